"""
Таксономия ошибок OCR сервиса.

Адаптеры (Tesseract, poppler, загрузчик изображений) бросают
исключения OCRServiceError с видом ошибки. Оркестратор страниц
превращает их в Failure постранично, роутер — в ответ с ошибкой.
"""

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Вид ошибки, возвращаемый клиенту в поле error.kind."""

    UNKNOWN_TOOL = "UnknownTool"
    INVALID_ARGUMENTS = "InvalidArguments"
    INPUT_NOT_FOUND = "InputNotFound"
    UNREADABLE_INPUT = "UnreadableInput"
    CORRUPT_DOCUMENT = "CorruptDocument"
    UNSUPPORTED_DOCUMENT = "UnsupportedDocument"
    UNSUPPORTED_LANGUAGE = "UnsupportedLanguage"
    ENGINE_FAILURE = "EngineFailure"
    CANCELLED = "Cancelled"
    INTERNAL_ERROR = "InternalError"


class OCRServiceError(Exception):
    """
    Базовое исключение сервиса.

    Attributes:
        kind: вид ошибки
        message: человекочитаемое сообщение (без трейсбэков движка)
        page_index: индекс страницы (с 0), если ошибка постраничная
    """

    kind = FailureKind.INTERNAL_ERROR

    def __init__(self, message: str, page_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.page_index = page_index


class UnknownToolError(OCRServiceError):
    kind = FailureKind.UNKNOWN_TOOL


class InvalidArgumentsError(OCRServiceError):
    kind = FailureKind.INVALID_ARGUMENTS


class InputNotFoundError(OCRServiceError):
    kind = FailureKind.INPUT_NOT_FOUND


class UnreadableInputError(OCRServiceError):
    kind = FailureKind.UNREADABLE_INPUT


class CorruptDocumentError(OCRServiceError):
    kind = FailureKind.CORRUPT_DOCUMENT


class UnsupportedDocumentError(OCRServiceError):
    kind = FailureKind.UNSUPPORTED_DOCUMENT


class UnsupportedLanguageError(OCRServiceError):
    kind = FailureKind.UNSUPPORTED_LANGUAGE


class EngineFailureError(OCRServiceError):
    kind = FailureKind.ENGINE_FAILURE
