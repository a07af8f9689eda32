#!/usr/bin/env python3
"""Entry point to run the CampusHub HTTP API."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

import uvicorn

from campushub.config import DEFAULT_PORT, SOURCES_PATH, get_bool, get_env, get_int
from campushub.log import get_logger

log = get_logger(__name__)


def _check_setup() -> None:
    if not SOURCES_PATH.exists():
        log.warning("No %s found — competitions endpoint will return no items", SOURCES_PATH.name)


if __name__ == "__main__":
    _check_setup()
    port = get_int("PORT", DEFAULT_PORT)
    host = get_env("HOST", "127.0.0.1")
    log.info("Starting CampusHub API on %s:%d", host, port)
    uvicorn.run(
        "campushub.api:app",
        host=host,
        port=port,
        reload=get_bool("RELOAD", False),
        log_level=get_env("LOG_LEVEL", "info").lower(),
    )
