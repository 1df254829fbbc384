from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV_VAR = "LRE_LOG_LEVEL"
_LOGGER_PREFIX = "lucro_real_engine"
_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Logger sob o namespace do engine (ex.: lucro_real_engine.tax_engine)."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """
    Instala um unico StreamHandler no logger raiz do engine.
    Nivel: argumento > variavel LRE_LOG_LEVEL > WARNING.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV_VAR, "WARNING")
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    return root


def reset_logging() -> None:
    root = logging.getLogger(_LOGGER_PREFIX)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
