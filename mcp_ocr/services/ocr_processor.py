"""
Процессор OCR — адаптер над Tesseract.

Держит конфигурацию движка (tessdata, OEM, PSM, текущий язык)
и выполняет один блокирующий вызов распознавания.

Tesseract не гарантирует потокобезопасность, поэтому все вызовы
сериализуются через threading.Lock. Установка языка и само
распознавание выполняются в одной критической секции.
"""

import logging
import threading
import time

import pytesseract
from PIL import Image

from mcp_ocr.errors import EngineFailureError, UnsupportedLanguageError

logger = logging.getLogger(__name__)

# Фрагменты сообщений Tesseract, когда языковые данные не найдены
_MISSING_LANGUAGE_MARKERS = (
    "failed loading language",
    "error opening data file",
    "could not initialize tesseract",
)


class TesseractRecognizer:
    """
    Адаптер распознавания текста через pytesseract.

    Один экземпляр на процесс; разделяется между запросами.

    Args:
        tessdata_dir: каталог с языковыми моделями Tesseract
        oem: режим движка Tesseract (--oem)
        psm: режим сегментации страницы (--psm)
        default_language: язык до первого вызова
        timeout_seconds: таймаут одного вызова, 0 — без ограничения
    """

    def __init__(
        self,
        tessdata_dir: str,
        oem: int = 3,
        psm: int = 3,
        default_language: str = "eng",
        timeout_seconds: float = 0,
    ):
        self._tessdata_dir = tessdata_dir
        self._oem = oem
        self._psm = psm
        self._language = default_language
        self._timeout_seconds = timeout_seconds
        self._lock = threading.Lock()

        logger.info(f"Tesseract инициализирован: tessdata={tessdata_dir}")

    @property
    def language(self) -> str:
        """Язык последнего вызова распознавания."""
        return self._language

    @property
    def config(self) -> str:
        """Строка конфигурации Tesseract."""
        return (
            f'--tessdata-dir "{self._tessdata_dir}" '
            f"--oem {self._oem} --psm {self._psm}"
        )

    def recognize(self, image: Image.Image, language: str) -> str:
        """
        Распознаёт текст на изображении.

        Повторных попыток нет: один вызов Tesseract либо успешен,
        либо завершается ошибкой.

        Args:
            image: декодированное изображение
            language: языки Tesseract (например "eng" или "rus+eng")

        Returns:
            str: распознанный текст как его вернул Tesseract

        Raises:
            UnsupportedLanguageError: языковые данные не установлены
            EngineFailureError: любая другая ошибка движка
        """
        with self._lock:
            self._language = language
            start = time.perf_counter()

            try:
                text = pytesseract.image_to_string(
                    image,
                    lang=self._language,
                    config=self.config,
                    timeout=self._timeout_seconds,
                )
            except pytesseract.TesseractNotFoundError as e:
                logger.error(f"Tesseract не найден: {e}")
                raise EngineFailureError(f"Tesseract is not installed: {e}")
            except pytesseract.TesseractError as e:
                message = _engine_message(e)
                if _is_missing_language(message):
                    logger.warning(f"Язык не установлен: {language} ({message})")
                    raise UnsupportedLanguageError(
                        f"Language '{language}' is not available: {message}"
                    )
                logger.error(f"Ошибка Tesseract (язык {language}): {message}")
                raise EngineFailureError(message)
            except RuntimeError as e:
                # pytesseract бросает RuntimeError при таймауте
                logger.error(f"Tesseract не уложился в таймаут: {e}")
                raise EngineFailureError(f"Tesseract failed: {e}")

            duration = int((time.perf_counter() - start) * 1000)

        logger.debug(f"OCR: {len(text)} симв. за {duration}ms, язык {language}")
        return text

    def engine_version(self) -> str:
        """
        Версия установленного Tesseract.

        Raises:
            EngineFailureError: Tesseract не найден
        """
        try:
            return str(pytesseract.get_tesseract_version())
        except pytesseract.TesseractNotFoundError as e:
            raise EngineFailureError(f"Tesseract is not installed: {e}")


def _engine_message(error: pytesseract.TesseractError) -> str:
    """Текст ошибки Tesseract без статуса процесса."""
    message = getattr(error, "message", None) or str(error)
    return str(message).strip()


def _is_missing_language(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _MISSING_LANGUAGE_MARKERS)
