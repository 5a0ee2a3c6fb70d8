"""
OCR MCP сервис — FastAPI приложение.

Транспорт для вызова инструментов распознавания текста.
Вся логика — в ToolRouter; здесь только приём конверта запроса
и отдача конверта ответа.

Эндпоинты:
    GET  /health — проверка работоспособности (Tesseract + CPU + конфиг)
    GET  /tools — каталог инструментов с JSON схемами
    POST /tools/call — вызов инструмента (image_to_text, pdf_to_text)

Запуск:
    uvicorn mcp_ocr.main:app --host 0.0.0.0 --port 8080

Или:
    python -m mcp_ocr.main
"""

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from mcp_ocr.config import Settings, settings
from mcp_ocr.errors import EngineFailureError
from mcp_ocr.schemas import ToolDefinition, ToolRequest, ToolResponse
from mcp_ocr.services.router import ToolRouter, build_router

# Настройка логгера
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [OCR-MCP] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "mcp-ocr-server"
SERVICE_VERSION = "1.0.0"


class UnicodeJSONResponse(JSONResponse):
    """JSON ответ с нормальным отображением не-ASCII текста (без \\uXXXX экранирования)."""

    def render(self, content) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
        ).encode("utf-8")


def create_app(
    router: Optional[ToolRouter] = None,
    config: Optional[Settings] = None,
) -> FastAPI:
    """
    Создаёт FastAPI приложение.

    Args:
        router: роутер инструментов (по умолчанию собирается по настройкам)
        config: настройки сервиса (по умолчанию глобальные)

    Returns:
        FastAPI: приложение с эндпоинтами инструментов
    """
    config = config or settings
    tool_router = router or build_router(config)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logger.info(f"Запуск {SERVICE_NAME} {SERVICE_VERSION}")
        logger.info(f"   TESSDATA_PREFIX: {config.tessdata_prefix}")
        logger.info(f"   CPU ядер: {os.cpu_count()}")
        yield
        tool_router.shutdown()
        logger.info(f"{SERVICE_NAME} остановлен")

    app = FastAPI(
        title="OCR MCP Service",
        description="Инструменты распознавания текста из изображений и PDF (Tesseract OCR)",
        version=SERVICE_VERSION,
        default_response_class=UnicodeJSONResponse,
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health_check() -> dict:
        """
        Проверка работоспособности сервиса.

        Проверяет доступность Tesseract, количество CPU
        и возвращает текущую конфигурацию.

        Returns:
            dict: статус сервиса и информация о системе
        """
        tesseract_ok = False
        try:
            tesseract_version = tool_router.engine_version()
            tesseract_ok = True
        except EngineFailureError as e:
            tesseract_version = f"error: {e.message}"

        return {
            "status": "ok" if tesseract_ok else "degraded",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "cpu_count": os.cpu_count(),
            "tesseract": {
                "available": tesseract_ok,
                "version": tesseract_version,
                "tessdata_prefix": config.tessdata_prefix,
            },
            "config": {
                "render_dpi": config.render_dpi,
                "render_format": config.render_format,
                "ocr_oem": config.ocr_oem,
                "ocr_psm": config.ocr_psm,
                "max_workers": tool_router.max_workers,
            },
        }

    @app.get("/tools", response_model=list[ToolDefinition])
    async def list_tools() -> list[ToolDefinition]:
        """Каталог доступных инструментов."""
        return tool_router.list_tools()

    @app.post("/tools/call", response_model=ToolResponse, response_model_exclude_none=True)
    async def call_tool(request: ToolRequest) -> ToolResponse:
        """
        Вызывает инструмент.

        Ошибки инструмента возвращаются в поле error с HTTP 200;
        статус отличается от 200 только для неразборчивого конверта.

        Args:
            request: конверт вызова {id, tool_name, arguments}

        Returns:
            ToolResponse: {id, result} или {id, error}
        """
        return await tool_router.route(request)

    return app


app = create_app()


def main() -> None:
    """Запускает сервис через uvicorn."""
    import uvicorn

    logger.info(f"Запуск {SERVICE_NAME} на {settings.host}:{settings.port}")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
