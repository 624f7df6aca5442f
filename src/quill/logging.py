# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    logger.addHandler(handler)
    # Records stop here so uvicorn's root configuration doesn't print them twice.
    logger.propagate = False

    level_name = os.getenv("QUILL_LOG_LEVEL", "INFO")
    level = getattr(logging, level_name.strip().upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)
    return logger
