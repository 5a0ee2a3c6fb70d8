"""
Оркестратор страниц — распознавание многостраничного документа.

Запускает по одному вызову распознавания на страницу в пуле потоков
ограниченного размера и собирает текст в порядке страниц, независимо
от порядка завершения.

Политика частичных ошибок — всё или ничего:
    - ошибка страницы не прерывает обработку остальных страниц
    - если упала хотя бы одна страница, итог — одна ошибка
      с индексом первой упавшей страницы, текст не возвращается
"""

import logging
import os
import threading
import time
from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Optional

from PIL import Image

from mcp_ocr.errors import FailureKind, OCRServiceError
from mcp_ocr.schemas import ExtractionOutcome, Failure, PageResult
from mcp_ocr.services.ocr_processor import TesseractRecognizer

logger = logging.getLogger(__name__)

# Разделитель страниц в итоговом тексте
PAGE_SEPARATOR = "\n\n--- Page Break ---\n\n"


def default_max_workers(cap: int) -> int:
    """Количество воркеров по умолчанию: ядра CPU, но не больше cap."""
    return max(1, min(os.cpu_count() or 4, cap))


class PageOrchestrator:
    """
    Распознаёт последовательность страниц и собирает итог.

    Args:
        recognizer: адаптер распознавания (общий для всех запросов)
        max_workers: число одновременно распознаваемых страниц
        max_workers_cap: верхняя граница max_workers
    """

    def __init__(
        self,
        recognizer: TesseractRecognizer,
        max_workers: Optional[int] = None,
        max_workers_cap: int = 8,
    ):
        self._recognizer = recognizer
        if max_workers is None:
            self.max_workers = default_max_workers(max_workers_cap)
        else:
            self.max_workers = max(1, min(max_workers, max_workers_cap))

    def extract(
        self,
        pages: Sequence,
        language: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> ExtractionOutcome:
        """
        Распознаёт все страницы и собирает текст.

        Страницы отправляются в пул постепенно: в работе не больше
        max_workers одновременно. После установки cancel_event новые
        страницы не отправляются, начатые дорабатывают до конца.

        Args:
            pages: изображения страниц по порядку (обращение по индексу
                может рендерить страницу лениво)
            language: языки Tesseract
            cancel_event: сигнал отмены запроса

        Returns:
            ExtractionOutcome: текст всех страниц или одна ошибка
        """
        total = len(pages)
        if total == 0:
            logger.info("Документ без страниц, возвращаем пустой текст")
            return ExtractionOutcome.success("")

        start = time.perf_counter()
        workers = min(self.max_workers, total)
        results: list[Optional[PageResult]] = [None] * total
        cancelled = False

        logger.info(f"   OCR: {total} страниц, воркеров {workers}, язык {language}")

        with ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix="ocr-page",
        ) as executor:
            in_flight: set[Future] = set()
            next_index = 0

            while True:
                while not cancelled and next_index < total and len(in_flight) < workers:
                    if cancel_event is not None and cancel_event.is_set():
                        cancelled = True
                        break
                    in_flight.add(
                        executor.submit(self._process_page, pages, next_index, language)
                    )
                    next_index += 1

                if not in_flight:
                    break

                done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    page_result = future.result()
                    results[page_result.page_index] = page_result

        duration = int((time.perf_counter() - start) * 1000)

        if cancelled:
            attempted = sum(1 for r in results if r is not None)
            logger.warning(
                f"   OCR отменён: обработано {attempted} из {total} страниц за {duration}ms"
            )
            return ExtractionOutcome.failed(
                Failure(
                    kind=FailureKind.CANCELLED,
                    message=f"Extraction cancelled after {attempted} of {total} pages",
                )
            )

        return _assemble(results, duration)

    def _process_page(self, pages: Sequence, page_index: int, language: str) -> PageResult:
        """
        Получает изображение страницы и распознаёт его.

        Никогда не бросает исключений: любая ошибка становится
        PageResult с failure. Изображение закрывается после распознавания.
        """
        image = None
        try:
            image = pages[page_index]
            text = self._recognizer.recognize(image, language)
            logger.info(f"        стр.{page_index + 1}: {len(text)} симв.")
            return PageResult(page_index=page_index, text=text)
        except OCRServiceError as e:
            logger.warning(f"        стр.{page_index + 1}: ошибка {e.kind.value}: {e.message}")
            return PageResult(
                page_index=page_index,
                failure=Failure(kind=e.kind, message=e.message, page_index=page_index),
            )
        except Exception as e:
            logger.exception(f"Непредвиденная ошибка на стр.{page_index + 1}: {e}")
            return PageResult(
                page_index=page_index,
                failure=Failure(
                    kind=FailureKind.INTERNAL_ERROR,
                    message=str(e) or e.__class__.__name__,
                    page_index=page_index,
                ),
            )
        finally:
            if isinstance(image, Image.Image):
                image.close()


def _assemble(results: list[Optional[PageResult]], duration_ms: int) -> ExtractionOutcome:
    """
    Собирает итог из результатов всех страниц.

    Args:
        results: результаты по индексу страницы, без пропусков
        duration_ms: время распознавания для лога

    Returns:
        ExtractionOutcome: склеенный текст или ошибка первой упавшей страницы
    """
    missing = [i for i, r in enumerate(results) if r is None]
    if missing:
        raise RuntimeError(f"no result for pages {missing}")

    total = len(results)
    failed = [r for r in results if not r.ok]

    if failed:
        first = failed[0]
        logger.error(
            f"   OCR: ошибки на {len(failed)} из {total} страниц за {duration_ms}ms, "
            f"первая — стр.{first.page_index + 1}"
        )
        return ExtractionOutcome.failed(
            Failure(
                kind=first.failure.kind,
                message=(
                    f"OCR failed on page {first.page_index + 1} of {total}: "
                    f"{first.failure.message}"
                ),
                page_index=first.page_index,
            )
        )

    text = PAGE_SEPARATOR.join(r.text for r in results)
    logger.info(f"   OCR: {total} страниц, {len(text)} симв. за {duration_ms}ms")
    return ExtractionOutcome.success(text)
