"""Process-wide logging configuration."""

from __future__ import annotations

import logging

from drum_returns.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once and align uvicorn/fastapi loggers with it."""
    level_name = (level or settings.log_level).upper()
    root = logging.getLogger()
    root.setLevel(level_name)

    # avoid duplicate handlers on reload
    if not any(getattr(h, "_drum_returns", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._drum_returns = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        logging.getLogger(name).setLevel(level_name)
