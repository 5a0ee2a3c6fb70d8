"""
Роутер вызовов инструментов.

Проверяет имя инструмента и аргументы, запускает сценарий
image_to_text или pdf_to_text и превращает итог в ToolResponse.

Роутер никогда не бросает исключений наружу: любая ошибка
становится ответом с error и исходным id запроса.

Пулы:
    - загрузка изображения и растеризация PDF (I/O) — threadpool Starlette
    - распознавание (CPU) — отдельный ThreadPoolExecutor
"""

import asyncio
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Awaitable, Callable, Optional

from PIL import Image
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from mcp_ocr.config import Settings
from mcp_ocr.errors import (
    InputNotFoundError,
    InvalidArgumentsError,
    OCRServiceError,
    UnknownToolError,
)
from mcp_ocr.schemas import (
    ExtractionOutcome,
    ImageToTextArgs,
    PdfToTextArgs,
    TextResult,
    ToolDefinition,
    ToolRequest,
    ToolResponse,
)
from mcp_ocr.services.formatter import failure_from_error, format_outcome, internal_failure
from mcp_ocr.services.image_loader import load_image
from mcp_ocr.services.ocr_processor import TesseractRecognizer
from mcp_ocr.services.page_orchestrator import PageOrchestrator
from mcp_ocr.services.pdf_processor import PdfRasterizer

logger = logging.getLogger(__name__)

IMAGE_TO_TEXT = "image_to_text"
PDF_TO_TEXT = "pdf_to_text"

TOOL_DESCRIPTIONS = {
    IMAGE_TO_TEXT: "Extracts text from a given image file.",
    PDF_TO_TEXT: "Extracts text from all pages of a given PDF file.",
}


class ToolRouter:
    """
    Диспетчер инструментов image_to_text и pdf_to_text.

    Args:
        recognizer: адаптер распознавания (единственный общий ресурс)
        rasterizer: адаптер растеризации PDF
        orchestrator: оркестратор страниц
        recognition_executor: пул для одиночного распознавания
            (по умолчанию создаётся свой)
        image_loader: загрузчик изображения по пути
    """

    def __init__(
        self,
        recognizer: TesseractRecognizer,
        rasterizer: PdfRasterizer,
        orchestrator: PageOrchestrator,
        recognition_executor: Optional[ThreadPoolExecutor] = None,
        image_loader: Callable[[str], Image.Image] = load_image,
    ):
        self._recognizer = recognizer
        self._rasterizer = rasterizer
        self._orchestrator = orchestrator
        self._image_loader = image_loader
        self._owns_executor = recognition_executor is None
        self._recognition_executor = recognition_executor or ThreadPoolExecutor(
            max_workers=orchestrator.max_workers,
            thread_name_prefix="ocr-image",
        )

        self._tools: dict[
            str,
            tuple[type[BaseModel], Callable[..., Awaitable[ExtractionOutcome]]],
        ] = {
            IMAGE_TO_TEXT: (ImageToTextArgs, self._image_to_text),
            PDF_TO_TEXT: (PdfToTextArgs, self._pdf_to_text),
        }

    @property
    def max_workers(self) -> int:
        return self._orchestrator.max_workers

    def engine_version(self) -> str:
        return self._recognizer.engine_version()

    def list_tools(self) -> list[ToolDefinition]:
        """Каталог инструментов с JSON схемами входа и выхода."""
        return [
            ToolDefinition(
                name=name,
                description=TOOL_DESCRIPTIONS[name],
                input_schema=args_model.model_json_schema(),
                output_schema=TextResult.model_json_schema(),
            )
            for name, (args_model, _) in self._tools.items()
        ]

    async def route(self, request: ToolRequest) -> ToolResponse:
        """
        Выполняет вызов инструмента.

        Args:
            request: конверт вызова

        Returns:
            ToolResponse: результат или ошибка, всегда с id запроса
        """
        start = time.perf_counter()
        logger.info(f"Вызов инструмента: {request.tool_name}, id={request.id}")

        try:
            outcome = await self._dispatch(request)
        except OCRServiceError as e:
            logger.error(f"{request.tool_name} (id={request.id}): {e.kind.value}: {e.message}")
            outcome = ExtractionOutcome.failed(failure_from_error(e))
        except Exception as e:
            logger.exception(f"Непредвиденная ошибка в {request.tool_name}: {e}")
            outcome = ExtractionOutcome.failed(internal_failure(e))

        duration = int((time.perf_counter() - start) * 1000)
        if outcome.ok:
            logger.info(
                f"{request.tool_name} завершён: id={request.id}, "
                f"{len(outcome.text)} симв. за {duration}ms"
            )
        else:
            logger.info(
                f"{request.tool_name} завершён с ошибкой: id={request.id}, "
                f"{outcome.failure.kind.value} за {duration}ms"
            )

        return format_outcome(outcome, request.id)

    async def _dispatch(self, request: ToolRequest) -> ExtractionOutcome:
        tool = self._tools.get(request.tool_name)
        if tool is None:
            raise UnknownToolError(f"Unknown tool: {request.tool_name}")

        args_model, handler = tool
        try:
            args = args_model.model_validate(request.arguments)
        except ValidationError as e:
            raise InvalidArgumentsError(f"Invalid arguments: {e}")

        return await handler(args)

    async def _image_to_text(self, args: ImageToTextArgs) -> ExtractionOutcome:
        logger.info(f"image_to_text: {args.image_path}, язык {args.language}")

        image = await run_in_threadpool(self._image_loader, args.image_path)

        loop = asyncio.get_running_loop()
        text = await loop.run_in_executor(
            self._recognition_executor,
            self._recognize_and_release,
            image,
            args.language,
        )
        return ExtractionOutcome.success(text)

    async def _pdf_to_text(self, args: PdfToTextArgs) -> ExtractionOutcome:
        logger.info(f"pdf_to_text: {args.document_path}, язык {args.language}")

        if not os.path.exists(args.document_path):
            raise InputNotFoundError(f"PDF file not found: {args.document_path}")

        cancel_event = threading.Event()
        try:
            pages = await run_in_threadpool(self._rasterizer.rasterize, args.document_path)
            return await run_in_threadpool(
                self._orchestrator.extract,
                pages,
                args.language,
                cancel_event,
            )
        except asyncio.CancelledError:
            # Начатые страницы дорабатывают, новые не запускаются
            logger.warning(f"pdf_to_text отменён клиентом: {args.document_path}")
            cancel_event.set()
            raise

    def _recognize_and_release(self, image: Image.Image, language: str) -> str:
        try:
            return self._recognizer.recognize(image, language)
        finally:
            image.close()

    def shutdown(self) -> None:
        """Останавливает собственный пул распознавания."""
        if self._owns_executor:
            self._recognition_executor.shutdown(wait=False)


def build_router(config: Settings) -> ToolRouter:
    """
    Собирает роутер с адаптерами Tesseract и poppler по настройкам.

    Args:
        config: настройки сервиса

    Returns:
        ToolRouter: готовый роутер
    """
    recognizer = TesseractRecognizer(
        tessdata_dir=config.tessdata_prefix,
        oem=config.ocr_oem,
        psm=config.ocr_psm,
        default_language=config.default_language,
        timeout_seconds=config.ocr_timeout_seconds,
    )
    rasterizer = PdfRasterizer(
        dpi=config.render_dpi,
        fmt=config.render_format,
        thread_count=config.render_thread_count,
        poppler_path=config.poppler_path,
        password=config.pdf_password,
    )
    orchestrator = PageOrchestrator(
        recognizer,
        max_workers=config.max_workers,
        max_workers_cap=config.max_workers_cap,
    )
    return ToolRouter(recognizer, rasterizer, orchestrator)
