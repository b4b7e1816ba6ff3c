# freight_market/core/logging.py
import logging
import os
import sys
from typing import Any, Optional

from loguru import logger

from freight_market.core.config import settings

# Loggers estándar que redirigimos a loguru
INTERCEPTED_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "sqlalchemy",
)


class InterceptHandler(logging.Handler):
    """
    Redirige los logs de logging estándar a loguru.
    """
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(
            depth=depth,
            exception=record.exc_info,
        ).log(level, record.getMessage())


def _format(json_logs: bool) -> str:
    if json_logs:
        return (
            '{{"time":"{time}","level":"{level}","message":{message!r},'
            '"name":"{name}","function":"{function}","line":{line},'
            '"extra":{extra!s}}}'
        )
    # {extra} lleva los campos bindeados (load_id, bid_id, ...)
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level> | {extra}"
    )


def setup_logging(
    *,
    json_logs: Optional[bool] = None,
    log_file: Optional[bool] = None,
    level: Optional[str] = None,
) -> None:
    """
    Config global a partir de ``settings`` (los kwargs mandan si se pasan):
    - Intercepta logging estándar (uvicorn, sqlalchemy, fastapi)
    - Consola con el nivel configurado
    - Ficheros en LOG_DIR:
        - app_YYYY-MM-DD.log   → hasta WARNING
        - error_YYYY-MM-DD.log → ERROR y superiores
    """
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    log_file = settings.LOG_TO_FILE if log_file is None else log_file
    level = (level or settings.LOG_LEVEL).upper()

    logging.root.handlers = []
    logging.root.setLevel(level)

    for name in INTERCEPTED_LOGGERS:
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False

    logger.remove()
    fmt = _format(json_logs)

    logger.add(
        sys.stdout,
        format=fmt,
        level=level,
        backtrace=True,
        diagnose=False,
    )

    if not log_file:
        return

    os.makedirs(settings.LOG_DIR, exist_ok=True)

    logger.add(
        os.path.join(settings.LOG_DIR, "app_{time:YYYY-MM-DD}.log"),
        format=fmt,
        level=level,
        filter=lambda record: record["level"].no < 40,  # < ERROR
        rotation="00:00",
        retention="7 days",
        compression="zip",
        enqueue=True,
    )

    # Los errores se guardan más tiempo
    logger.add(
        os.path.join(settings.LOG_DIR, "error_{time:YYYY-MM-DD}.log"),
        format=fmt,
        level="ERROR",
        rotation="00:00",
        retention="30 days",
        compression="zip",
        enqueue=True,
    )


def get_logger(**binds: Any):
    """
    Logger con contexto extra.
    Ej: logger = get_logger(module="assignment_service")
    """
    return logger.bind(**binds)
