"""Тесты загрузки изображений."""

import pytest
from PIL import Image

from mcp_ocr.errors import InputNotFoundError, UnreadableInputError
from mcp_ocr.services.image_loader import load_image


def test_loads_decoded_image(sample_png):
    image = load_image(sample_png)

    assert image.size == (64, 32)
    assert image.getpixel((15, 16)) == (0, 0, 0)


def test_missing_file(tmp_path):
    with pytest.raises(InputNotFoundError) as exc_info:
        load_image(str(tmp_path / "missing.png"))

    assert "missing.png" in exc_info.value.message


def test_not_an_image(tmp_path):
    path = tmp_path / "notes.png"
    path.write_text("plain text, not pixels")

    with pytest.raises(UnreadableInputError):
        load_image(str(path))


def test_truncated_image(tmp_path, sample_png):
    data = open(sample_png, "rb").read()
    path = tmp_path / "truncated.png"
    path.write_bytes(data[: len(data) // 2])

    with pytest.raises(UnreadableInputError):
        load_image(str(path))


def test_directory_is_unreadable(tmp_path):
    with pytest.raises(UnreadableInputError):
        load_image(str(tmp_path))


def test_other_formats(tmp_path):
    path = tmp_path / "scan.tiff"
    Image.new("L", (20, 10), color=128).save(path)

    assert load_image(str(path)).mode == "L"
