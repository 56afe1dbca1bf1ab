#!/usr/bin/env python3
# entrypoint_background_check.py
"""
Точка входа для Background Check Service.
Порт: 8092
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию в путь
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import uvicorn

from src.config import settings
from src.common.logger import log_info, setup_logging
from src.common.constants import TypeMsg


async def main() -> None:
    """Запуск Background Check Service."""
    setup_logging()
    await log_info(
        f"Запуск Background Check Service на порту {settings.deployment.BACKGROUND_CHECK_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.background_check.app:app",
        host=settings.deployment.BACKGROUND_CHECK_HOST,
        port=settings.deployment.BACKGROUND_CHECK_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
