"""
Process-wide logging for campushub.

Every module asks for ``get_logger(__name__)``; the first call installs the
root handlers. Environment knobs:

  LOG_LEVEL            console level (default INFO)
  CAMPUSHUB_LOG_DIR    directory for the daily ``campushub_<date>.log``
  CAMPUSHUB_LOG_FILE   set to false/0/no to log to the console only
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("urllib3", "httpx", "asyncio", "playwright")

_state = {"ready": False}


def _default_log_dir() -> Path:
    return Path(os.environ.get("CAMPUSHUB_LOG_DIR") or Path(__file__).resolve().parent.parent / "logs")


def _file_logging_enabled() -> bool:
    return os.environ.get("CAMPUSHUB_LOG_FILE", "true").strip().lower() not in ("0", "false", "no")


def _daily_file_handler(log_dir: Path) -> logging.Handler | None:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / f"campushub_{date.today():%Y-%m-%d}.log", encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"campushub: file logging disabled ({exc})\n")
        return None
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(level: str | None = None, log_dir: Path | None = None) -> None:
    """Install console (and daily file) handlers on the root logger once.

    Handlers already on the root logger, e.g. ones installed by uvicorn or
    pytest, are left in charge.
    """
    if _state["ready"]:
        return
    _state["ready"] = True

    name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    numeric = getattr(logging, name, logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    if root.handlers:
        return

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(numeric)
    handlers: list[logging.Handler] = [console]

    if _file_logging_enabled():
        file_handler = _daily_file_handler(log_dir or _default_log_dir())
        if file_handler is not None:
            handlers.append(file_handler)

    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
