"""
Процессор разбиения PDF на изображения.

Использует pdf2image (pdftoppm из poppler) для рендеринга страниц.
Страницы рендерятся лениво, по одной при обращении, чтобы в памяти
держались только те изображения, которые сейчас распознаются.
"""

import logging
from collections.abc import Sequence
from typing import Optional, Union

from pdf2image import convert_from_path, pdfinfo_from_path
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)
from PIL import Image

from mcp_ocr.errors import (
    CorruptDocumentError,
    InputNotFoundError,
    OCRServiceError,
    UnreadableInputError,
    UnsupportedDocumentError,
)

logger = logging.getLogger(__name__)

# Сигнатура PDF может стоять не в самом начале, но в первых 1024 байтах
PDF_SIGNATURE = b"%PDF"
PDF_HEADER_SCAN_BYTES = 1024


class PdfPages(Sequence):
    """
    Ленивая последовательность страниц PDF.

    Длина равна количеству страниц из pdfinfo. Обращение по индексу
    (с 0) рендерит одну страницу; ошибка рендеринга становится
    UnreadableInputError с индексом страницы.

    Рендеринг происходит в том потоке, который обращается к странице,
    то есть в пуле распознавания оркестратора, а не в threadpool
    Starlette. Так одновременно в памяти не больше max_workers страниц.

    Args:
        rasterizer: растеризатор с параметрами рендеринга
        pdf_path: путь к PDF
        page_count: количество страниц
    """

    def __init__(self, rasterizer: "PdfRasterizer", pdf_path: str, page_count: int):
        self._rasterizer = rasterizer
        self._pdf_path = pdf_path
        self._page_count = page_count

    def __len__(self) -> int:
        return self._page_count

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(self._page_count))]

        if index < 0:
            index += self._page_count
        if not 0 <= index < self._page_count:
            raise IndexError(f"page index out of range: {index}")

        return self._rasterizer.render_page(self._pdf_path, index)


class PdfRasterizer:
    """
    Адаптер растеризации PDF через pdf2image.

    Args:
        dpi: разрешение рендеринга
        fmt: формат промежуточных изображений pdftoppm
        thread_count: потоки pdftoppm на один рендер
        poppler_path: каталог с бинарниками poppler (None — из PATH)
        password: пароль пользователя для зашифрованных PDF
    """

    def __init__(
        self,
        dpi: int = 300,
        fmt: str = "png",
        thread_count: int = 1,
        poppler_path: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.dpi = dpi
        self.fmt = fmt
        self.thread_count = thread_count
        self.poppler_path = poppler_path
        self.password = password

    def rasterize(self, pdf_path: str) -> PdfPages:
        """
        Открывает PDF и возвращает последовательность его страниц.

        Зашифрованный документ не отклоняется: рендеринг идёт
        по возможности, ошибки конкретных страниц всплывут
        при их распознавании.

        Args:
            pdf_path: путь к PDF файлу

        Returns:
            PdfPages: страницы в порядке документа (может быть пустой)

        Raises:
            InputNotFoundError: файл не открывается
            UnsupportedDocumentError: файл не PDF
            CorruptDocumentError: poppler не смог разобрать PDF
            UnreadableInputError: документ требует пароль
            OCRServiceError: poppler не установлен
        """
        logger.info(f"Разбиение PDF: {pdf_path}, dpi={self.dpi}")

        _check_signature(pdf_path)

        try:
            info = pdfinfo_from_path(
                pdf_path,
                userpw=self.password,
                poppler_path=self.poppler_path,
            )
        except PDFInfoNotInstalledError as e:
            logger.error(f"poppler не установлен: {e}")
            raise OCRServiceError(f"PDF renderer is not installed: {e}")
        except PDFPageCountError as e:
            message = _short_message(e)
            if "password" in str(e).lower():
                logger.error(f"PDF требует пароль: {pdf_path}")
                raise UnreadableInputError(
                    f"PDF is encrypted and requires a password: {pdf_path}"
                )
            logger.error(f"Повреждённый PDF {pdf_path}: {e}")
            raise CorruptDocumentError(f"Could not parse PDF {pdf_path}: {message}")

        if _is_encrypted(info):
            logger.warning(f"PDF зашифрован, обрабатываем как есть: {pdf_path}")

        page_count = int(info.get("Pages", 0) or 0)
        logger.info(f"PDF содержит {page_count} страниц")

        return PdfPages(self, pdf_path, page_count)

    def render_page(self, pdf_path: str, page_index: int) -> Image.Image:
        """
        Рендерит одну страницу PDF.

        Args:
            pdf_path: путь к PDF файлу
            page_index: индекс страницы (с 0)

        Returns:
            Image.Image: изображение страницы

        Raises:
            UnreadableInputError: страницу не удалось отрендерить
        """
        page_number = page_index + 1
        logger.debug(f"Рендеринг стр.{page_number} с dpi={self.dpi}")

        # Без strict: предупреждения pdftoppm ("Syntax Error") не ошибка,
        # если poppler всё же отдал изображение
        try:
            images = convert_from_path(
                pdf_path,
                dpi=self.dpi,
                fmt=self.fmt,
                thread_count=self.thread_count,
                first_page=page_number,
                last_page=page_number,
                userpw=self.password,
                poppler_path=self.poppler_path,
            )
        except (PDFSyntaxError, PDFPageCountError, PDFPopplerTimeoutError) as e:
            logger.warning(f"Не удалось отрендерить стр.{page_number}: {e}")
            raise UnreadableInputError(
                f"Could not render page {page_number}: {_short_message(e)}",
                page_index=page_index,
            )

        if not images:
            raise UnreadableInputError(
                f"Could not render page {page_number}: renderer returned no image",
                page_index=page_index,
            )

        return images[0]


def _check_signature(pdf_path: str) -> None:
    """
    Проверяет PDF сигнатуру (%PDF) в начале файла.

    Ошибка открытия трактуется как отсутствие файла: файл мог
    исчезнуть после проверки существования.
    """
    try:
        with open(pdf_path, "rb") as f:
            header = f.read(PDF_HEADER_SCAN_BYTES)
    except OSError as e:
        logger.error(f"Не удалось открыть PDF {pdf_path}: {e}")
        raise InputNotFoundError(f"PDF file not found: {pdf_path}")

    if PDF_SIGNATURE not in header:
        logger.error(f"Файл не является PDF: {pdf_path}")
        raise UnsupportedDocumentError(
            f"File is not a PDF document (missing %PDF signature): {pdf_path}"
        )


def _is_encrypted(info: dict) -> bool:
    return str(info.get("Encrypted", "no")).lower().startswith("yes")


def _short_message(error: Exception) -> str:
    lines = [line.strip() for line in str(error).splitlines() if line.strip()]
    return lines[-1] if lines else error.__class__.__name__
