from __future__ import annotations

import logging

from clipframe.config import LoggingSettings

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(settings: LoggingSettings) -> None:
    """Configure process-wide logging once at startup.

    ``settings.loggers`` maps logger names (e.g. ``clipframe.framing``) to
    levels so a single engine can be traced without flooding the rest.
    """

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.file is not None:
        settings.file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.file, encoding="utf-8"))

    logging.basicConfig(
        level=_resolve_level(settings.level),
        format=DEFAULT_LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name, level in sorted(settings.loggers.items()):
        logging.getLogger(name).setLevel(_resolve_level(level))


def _resolve_level(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)
