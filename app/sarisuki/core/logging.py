from __future__ import annotations

import json
import logging

from app.sarisuki.core.config import settings


def configure_logging() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(message)s")


def log_json(logger: logging.Logger, payload: dict, *, level: int = logging.INFO) -> None:
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def log_event(logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields) -> None:
    """Emit a single structured line for a domain event (sale recorded, logout, ...)."""
    log_json(logger, {"event": event, **fields}, level=level)
