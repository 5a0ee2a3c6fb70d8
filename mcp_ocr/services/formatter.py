"""
Преобразование внутреннего итога обработки в ответ инструмента.
"""

from typing import Union

from mcp_ocr.errors import FailureKind, OCRServiceError
from mcp_ocr.schemas import ExtractionOutcome, Failure, TextResult, ToolError, ToolResponse

RequestId = Union[int, str, None]


def format_outcome(outcome: ExtractionOutcome, request_id: RequestId) -> ToolResponse:
    """
    Формирует ответ из итога обработки.

    Любая ошибка превращается в error, успех — в result.text.

    Args:
        outcome: итог обработки запроса
        request_id: id исходного запроса

    Returns:
        ToolResponse: ответ с тем же id
    """
    if outcome.failure is not None:
        return format_failure(outcome.failure, request_id)

    return ToolResponse(id=request_id, result=TextResult(text=outcome.text or ""))


def format_failure(failure: Failure, request_id: RequestId) -> ToolResponse:
    """Формирует ответ с ошибкой."""
    return ToolResponse(
        id=request_id,
        error=ToolError(
            kind=failure.kind,
            message=failure.message,
            page_index=failure.page_index,
        ),
    )


def failure_from_error(error: OCRServiceError) -> Failure:
    """Failure из исключения сервиса."""
    return Failure(kind=error.kind, message=error.message, page_index=error.page_index)


def internal_failure(error: Exception) -> Failure:
    """Failure для непредвиденного исключения — только текст, без трейсбэка."""
    return Failure(
        kind=FailureKind.INTERNAL_ERROR,
        message=f"Internal server error: {str(error) or error.__class__.__name__}",
    )
