"""
Сервисы OCR обработки.

Модули:
    - ocr_processor: адаптер распознавания Tesseract
    - image_loader: загрузка изображения с диска
    - pdf_processor: разбиение PDF на изображения страниц
    - page_orchestrator: распознавание страниц и сборка текста
    - formatter: преобразование итога в ответ инструмента
    - router: диспетчер вызовов инструментов
"""

from mcp_ocr.services.image_loader import load_image
from mcp_ocr.services.ocr_processor import TesseractRecognizer
from mcp_ocr.services.page_orchestrator import PAGE_SEPARATOR, PageOrchestrator
from mcp_ocr.services.pdf_processor import PdfPages, PdfRasterizer
from mcp_ocr.services.router import ToolRouter, build_router

__all__ = [
    "load_image",
    "TesseractRecognizer",
    "PageOrchestrator",
    "PAGE_SEPARATOR",
    "PdfRasterizer",
    "PdfPages",
    "ToolRouter",
    "build_router",
]
