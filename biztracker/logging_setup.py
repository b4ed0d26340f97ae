# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAMES = ("biztracker", "bizcore")


def setup_logging(log_path: Path, level: int = logging.INFO) -> logging.Logger:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    handler = None
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        if any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
            continue
        if handler is None:
            handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
            handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logging.getLogger(LOGGER_NAMES[0])
