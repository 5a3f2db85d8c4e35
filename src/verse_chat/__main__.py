"""Entrypoint: python -m verse_chat"""
from __future__ import annotations

import uvicorn

from verse_chat.config import settings
from verse_chat.logging_setup import configure_logging


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "verse_chat.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
    )


if __name__ == "__main__":
    main()
