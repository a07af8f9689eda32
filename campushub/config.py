"""Load env settings and the static competition source list."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from campushub.log import get_logger
from campushub.models import SourceDescriptor

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SOURCES_PATH: Path = CONFIG_DIR / "sources.yaml"
DATA_DIR: Path = Path(os.environ.get("CAMPUSHUB_DATA_DIR", ROOT_DIR / "data"))

USERS_FILE: Path = DATA_DIR / "users.json"
PROJECTS_FILE: Path = DATA_DIR / "projects.json"
ASSIGNMENTS_FILE: Path = DATA_DIR / "assignments.json"

SOURCE_TYPES = ("rss", "html")
DEFAULT_CACHE_TTL = 180.0
DEFAULT_PORT = 4003


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def get_bool(key: str, default: bool = False) -> bool:
    raw = get_env(key)
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def get_int(key: str, default: int) -> int:
    raw = get_env(key)
    try:
        return int(raw) if raw else default
    except ValueError:
        log.warning("Ignoring non-integer %s=%r, using %d", key, raw, default)
        return default


def get_float(key: str, default: float) -> float:
    raw = get_env(key)
    try:
        return float(raw) if raw else default
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r, using %s", key, raw, default)
        return default


def ensure_dirs() -> None:
    for d in (DATA_DIR, CONFIG_DIR):
        d.mkdir(parents=True, exist_ok=True)


def cors_origins() -> list[str]:
    raw = get_env("CORS_ORIGINS")
    if not raw:
        return ["http://localhost:5173", "http://localhost:3000"]
    return [o.strip() for o in raw.split(",") if o.strip()]


def _parse_source(entry: Any) -> SourceDescriptor | None:
    if not isinstance(entry, dict):
        return None
    src_id = str(entry.get("id") or "").strip()
    url = str(entry.get("url") or "").strip()
    src_type = str(entry.get("type") or "").strip().lower()
    if not src_id or not url or src_type not in SOURCE_TYPES:
        return None

    # puppeteerSelectors is the legacy JSON source-list key
    selectors = entry.get("selectors") or entry.get("puppeteerSelectors")
    return SourceDescriptor(
        id=src_id,
        name=str(entry.get("name") or src_id),
        type=src_type,
        url=url,
        parser=entry.get("parser") or None,
        selectors=dict(selectors) if isinstance(selectors, dict) else None,
        wait_selector=entry.get("wait_selector") or None,
    )


def load_sources(path: Path | None = None) -> list[SourceDescriptor]:
    """Read the source list once; malformed entries are skipped."""
    path = path or SOURCES_PATH
    if not path.exists():
        log.warning("No source list at %s — aggregator has nothing to fetch", path)
        return []
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("sources", []) if isinstance(data, dict) else data
    sources: list[SourceDescriptor] = []
    seen: set[str] = set()
    for entry in entries or []:
        src = _parse_source(entry)
        if src is None:
            log.warning("Skipping malformed source entry: %r", entry)
            continue
        if src.id in seen:
            log.warning("Skipping duplicate source id %r", src.id)
            continue
        seen.add(src.id)
        sources.append(src)

    log.info("Loaded %d competition source(s) from %s", len(sources), path.name)
    return sources
