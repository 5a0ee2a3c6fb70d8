"""
Схемы данных OCR MCP сервиса.

Включает:
    - Pydantic модели конверта вызова инструмента (запрос, ответ)
    - Pydantic модели аргументов инструментов
    - Внутренние dataclass'ы пайплайна (результат страницы, ошибка, итог)
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from mcp_ocr.errors import FailureKind


# =============================================================================
# Аргументы инструментов
# =============================================================================


class ImageToTextArgs(BaseModel):
    """
    Аргументы инструмента image_to_text.

    Attributes:
        image_path: абсолютный путь к файлу изображения
        language: языки Tesseract (например "eng" или "rus+eng")
    """

    model_config = ConfigDict(extra="ignore")

    image_path: str = Field(
        min_length=1,
        description="Absolute path to the input image file.",
    )
    language: str = Field(
        default="eng",
        min_length=1,
        description="Tesseract language code(s). Defaults to 'eng'.",
    )


class PdfToTextArgs(BaseModel):
    """
    Аргументы инструмента pdf_to_text.

    Поле pdf_path принимается как синоним document_path.

    Attributes:
        document_path: абсолютный путь к PDF файлу
        language: языки Tesseract
    """

    model_config = ConfigDict(extra="ignore")

    document_path: str = Field(
        min_length=1,
        validation_alias=AliasChoices("document_path", "pdf_path"),
        description="Absolute path to the input PDF file.",
    )
    language: str = Field(
        default="eng",
        min_length=1,
        description="Tesseract language code(s). Defaults to 'eng'.",
    )


class TextResult(BaseModel):
    """Успешный результат инструмента."""

    text: str = Field(description="The extracted text content.")


# =============================================================================
# Конверт вызова инструмента
# =============================================================================


class ToolDefinition(BaseModel):
    """Описание инструмента для каталога /tools."""

    name: str
    description: str
    input_schema: dict
    output_schema: dict


class ToolRequest(BaseModel):
    """
    Запрос на вызов инструмента.

    arguments намеренно не типизирован: форму проверяет роутер,
    чтобы ошибка вернулась как InvalidArguments с исходным id.

    Attributes:
        id: идентификатор запроса (возвращается в ответе как есть)
        tool_name: имя инструмента
        arguments: аргументы инструмента
    """

    id: Union[int, str, None] = None
    tool_name: str
    arguments: Any = Field(default_factory=dict)


class ToolError(BaseModel):
    """
    Ошибка вызова инструмента.

    Attributes:
        kind: вид ошибки (FailureKind)
        message: сообщение для клиента
        page_index: индекс страницы (с 0) для постраничных ошибок
    """

    kind: FailureKind
    message: str
    page_index: Optional[int] = None


class ToolResponse(BaseModel):
    """
    Ответ на вызов инструмента.

    Заполнено ровно одно из полей result / error.
    """

    id: Union[int, str, None] = None
    result: Optional[TextResult] = None
    error: Optional[ToolError] = None


# =============================================================================
# Внутренние структуры пайплайна
# =============================================================================


@dataclass(frozen=True)
class Failure:
    """
    Ошибка обработки без внутреннего состояния движка.

    Attributes:
        kind: вид ошибки
        message: сообщение движка или сервиса
        page_index: индекс страницы (с 0), если ошибка постраничная
    """

    kind: FailureKind
    message: str
    page_index: Optional[int] = None


@dataclass(frozen=True)
class PageResult:
    """
    Результат распознавания одной страницы.

    Заполнено либо text, либо failure.

    Attributes:
        page_index: индекс страницы (с 0)
        text: распознанный текст
        failure: ошибка распознавания страницы
    """

    page_index: int
    text: Optional[str] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class ExtractionOutcome:
    """
    Итог обработки запроса: текст или ошибка.

    Attributes:
        text: собранный текст (при успехе)
        failure: ошибка (при неудаче)
    """

    text: Optional[str] = None
    failure: Optional[Failure] = None

    @classmethod
    def success(cls, text: str) -> "ExtractionOutcome":
        return cls(text=text)

    @classmethod
    def failed(cls, failure: Failure) -> "ExtractionOutcome":
        return cls(failure=failure)

    @property
    def ok(self) -> bool:
        return self.failure is None
