"""
Конфигурация OCR MCP сервиса.

Все значения читаются из .env файла (или переменных окружения).
У каждого параметра есть дефолт, поэтому .env не обязателен.

Единый префикс: OCR_
Документация по параметрам: .env.example
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Путь к tessdata для Debian/Ubuntu с Tesseract 4
DEFAULT_TESSDATA_PREFIX = "/usr/share/tesseract-ocr/4.00/tessdata"


class Settings(BaseSettings):
    """
    Настройки OCR MCP сервиса.

    Читает переменные с префиксом OCR_ из .env файла.
    Путь к tessdata дополнительно читается из стандартной
    переменной TESSDATA_PREFIX.
    """

    model_config = SettingsConfigDict(
        env_prefix="OCR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # --- Сервер ---
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # --- OCR: Tesseract ---
    tessdata_prefix: str = Field(
        default=DEFAULT_TESSDATA_PREFIX,
        validation_alias=AliasChoices("OCR_TESSDATA_PREFIX", "TESSDATA_PREFIX"),
    )
    default_language: str = "eng"
    ocr_oem: int = 3
    ocr_psm: int = 3
    # 0: без ограничения по времени
    ocr_timeout_seconds: float = 0

    # --- Split: PDF -> images ---
    render_dpi: int = Field(default=300, ge=1)
    render_format: str = "png"
    render_thread_count: int = Field(default=1, ge=1)
    poppler_path: Optional[str] = None
    pdf_password: Optional[str] = None

    # --- Параллелизм распознавания ---
    max_workers: Optional[int] = Field(default=None, ge=1)
    max_workers_cap: int = Field(default=8, ge=1)


# Глобальный экземпляр настроек
settings = Settings()
