"""Общие фикстуры и тестовые двойники адаптеров."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import pytest
from PIL import Image

from mcp_ocr.errors import EngineFailureError, OCRServiceError
from mcp_ocr.services.page_orchestrator import PageOrchestrator
from mcp_ocr.services.router import ToolRouter


@dataclass(frozen=True)
class FakePage:
    """Страница-заглушка вместо изображения."""

    index: int


class StubRecognizer:
    """
    Двойник TesseractRecognizer.

    Args:
        handler: функция (image, language) -> text; может бросать исключения
        delays: задержка по индексу FakePage для перемешивания порядка завершения
    """

    def __init__(
        self,
        handler: Optional[Callable] = None,
        delays: Optional[dict] = None,
        version: str = "5.3.0",
    ):
        self._handler = handler or (lambda image, language: f"text-{image.index}")
        self._delays = delays or {}
        self._version = version
        self._lock = threading.Lock()
        self._active = 0
        self.calls: list = []
        self.max_concurrency = 0

    def recognize(self, image, language: str) -> str:
        with self._lock:
            self.calls.append((image, language))
            self._active += 1
            self.max_concurrency = max(self.max_concurrency, self._active)
        try:
            delay = self._delays.get(getattr(image, "index", None), 0)
            if delay:
                time.sleep(delay)
            return self._handler(image, language)
        finally:
            with self._lock:
                self._active -= 1

    def engine_version(self) -> str:
        if self._version is None:
            raise EngineFailureError("tesseract is not installed or it's not in your PATH")
        return self._version


class StubRasterizer:
    """Двойник PdfRasterizer: возвращает заданные страницы или бросает ошибку."""

    def __init__(self, pages=None, error: Optional[Exception] = None):
        self._pages = pages if pages is not None else []
        self._error = error
        self.calls: list[str] = []

    def rasterize(self, pdf_path: str):
        self.calls.append(pdf_path)
        if self._error is not None:
            raise self._error
        return self._pages


class FailingPages:
    """Ленивая последовательность, у которой часть страниц не рендерится."""

    def __init__(self, count: int, broken: set[int]):
        self._count = count
        self._broken = broken
        self.accessed: list[int] = []

    def __len__(self) -> int:
        return self._count

    def __getitem__(self, index: int):
        self.accessed.append(index)
        if index in self._broken:
            raise OCRServiceError(f"Could not render page {index + 1}", page_index=index)
        return FakePage(index)


@pytest.fixture
def recognizer() -> StubRecognizer:
    return StubRecognizer()


@pytest.fixture
def make_router():
    """Фабрика роутера с двойниками адаптеров."""
    routers: list[ToolRouter] = []

    def _make(recognizer, rasterizer=None, max_workers: int = 4) -> ToolRouter:
        orchestrator = PageOrchestrator(recognizer, max_workers=max_workers)
        router = ToolRouter(recognizer, rasterizer or StubRasterizer(), orchestrator)
        routers.append(router)
        return router

    yield _make

    for router in routers:
        router.shutdown()


@pytest.fixture
def sample_png(tmp_path) -> str:
    """Небольшое RGB изображение на диске."""
    path = tmp_path / "sample.png"
    image = Image.new("RGB", (64, 32), color="white")
    for x in range(10, 30):
        image.putpixel((x, 16), (0, 0, 0))
    image.save(path)
    return str(path)


@pytest.fixture
def sample_pdf(tmp_path) -> str:
    """Файл с PDF сигнатурой (содержимое рендерит двойник)."""
    path = tmp_path / "doc.pdf"
    path.write_bytes(b"%PDF-1.4\n%stub\n")
    return str(path)
