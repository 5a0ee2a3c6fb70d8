"""Тесты формирования ответа инструмента."""

from mcp_ocr.errors import FailureKind, InputNotFoundError
from mcp_ocr.schemas import ExtractionOutcome, Failure
from mcp_ocr.services.formatter import failure_from_error, format_outcome, internal_failure


def test_success():
    response = format_outcome(ExtractionOutcome.success("text"), 5)

    assert response.id == 5
    assert response.result.text == "text"
    assert response.error is None


def test_empty_success_is_still_success():
    response = format_outcome(ExtractionOutcome.success(""), "x")

    assert response.result.text == ""
    assert response.error is None


def test_every_failure_kind_is_an_error():
    for kind in FailureKind:
        outcome = ExtractionOutcome.failed(Failure(kind=kind, message="m", page_index=0))
        response = format_outcome(outcome, None)

        assert response.result is None
        assert response.error.kind == kind
        assert response.error.message == "m"
        assert response.error.page_index == 0


def test_failure_from_error():
    failure = failure_from_error(InputNotFoundError("PDF file not found: /tmp/missing.pdf"))

    assert failure.kind == FailureKind.INPUT_NOT_FOUND
    assert failure.page_index is None


def test_internal_failure_has_no_traceback():
    failure = internal_failure(ZeroDivisionError("division by zero"))

    assert failure.kind == FailureKind.INTERNAL_ERROR
    assert failure.message == "Internal server error: division by zero"


def test_error_serialization():
    outcome = ExtractionOutcome.failed(
        Failure(kind=FailureKind.INPUT_NOT_FOUND, message="PDF file not found: /tmp/missing.pdf")
    )

    payload = format_outcome(outcome, 3).model_dump(mode="json", exclude_none=True)

    assert payload == {
        "id": 3,
        "error": {"kind": "InputNotFound", "message": "PDF file not found: /tmp/missing.pdf"},
    }
