"""
OCR MCP сервис — распознавание текста из изображений и PDF.

Инструменты:
    - image_to_text: текст из одного изображения
    - pdf_to_text: текст со всех страниц PDF

Распознавание выполняет Tesseract (pytesseract), растеризацию PDF —
poppler (pdf2image). Страницы PDF распознаются параллельно
в ограниченном пуле потоков, доступ к Tesseract сериализован.
"""

from mcp_ocr.config import Settings, settings
from mcp_ocr.errors import FailureKind, OCRServiceError
from mcp_ocr.schemas import ToolRequest, ToolResponse

__all__ = [
    "settings",
    "Settings",
    "FailureKind",
    "OCRServiceError",
    "ToolRequest",
    "ToolResponse",
]
