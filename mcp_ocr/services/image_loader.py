"""
Загрузка изображения с диска в декодированный PIL.Image.
"""

import logging
import os

from PIL import Image, UnidentifiedImageError

from mcp_ocr.errors import InputNotFoundError, UnreadableInputError

logger = logging.getLogger(__name__)


def load_image(image_path: str) -> Image.Image:
    """
    Загружает и полностью декодирует изображение.

    Декодирование выполняется сразу (Image.load), чтобы битый файл
    дал ошибку здесь, а не внутри Tesseract.

    Args:
        image_path: путь к файлу изображения

    Returns:
        Image.Image: декодированное изображение

    Raises:
        InputNotFoundError: файла нет
        UnreadableInputError: файл есть, но не декодируется
    """
    if not os.path.exists(image_path):
        logger.error(f"Изображение не найдено: {image_path}")
        raise InputNotFoundError(f"Image file not found: {image_path}")

    try:
        image = Image.open(image_path)
    except FileNotFoundError:
        # Файл удалён между проверкой и открытием
        raise InputNotFoundError(f"Image file not found: {image_path}")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        logger.error(f"Не удалось открыть изображение {image_path}: {e}")
        raise UnreadableInputError(f"Could not read image file: {image_path}")

    try:
        image.load()
    except (Image.DecompressionBombError, OSError, SyntaxError) as e:
        # Pillow бросает SyntaxError на битых чанках PNG
        image.close()
        logger.error(f"Не удалось декодировать изображение {image_path}: {e}")
        raise UnreadableInputError(f"Could not decode image file: {image_path}")

    logger.info(
        f"Изображение загружено: {image_path} "
        f"({image.width}x{image.height}, {image.mode})"
    )
    return image
