from __future__ import annotations

import logging
from pathlib import Path

# request lines from the HTTP stack duplicate our own "GET <url> -> <status>" records
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "WARNING", log_file: Path | None = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=root_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=handlers,
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if root_level <= logging.DEBUG else logging.WARNING)
