"""Map raw per-source records to NormalizedEvent, merge, filter and sort."""
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Iterable

from dateutil import parser as date_parser

from campushub.log import get_logger
from campushub.models import NormalizedEvent

log = get_logger(__name__)

NO_TITLE = "[no title]"

_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: Any) -> datetime | None:
    """Parse a complete date; partial or unparseable text yields None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            # epoch milliseconds, as emitted by JS-side feeds
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    if not text:
        return None
    try:
        first = date_parser.parse(text, default=_DEFAULT_A)
        second = date_parser.parse(text, default=_DEFAULT_B)
    except (ValueError, OverflowError, TypeError):
        return None
    # a field missing from the text is filled from the default, so the two differ
    if first != second:
        return None
    return _as_utc(first)


def to_iso(value: Any) -> str | None:
    dt = parse_datetime(value)
    if dt is None:
        return None
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = raw.get(k)
        if v not in (None, "", []):
            return v
    return None


def _tags(raw: dict[str, Any]) -> list[str]:
    value = _first(raw, "categories", "tags")
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    tags = [str(t).strip() for t in value if t is not None and str(t).strip()]
    return list(dict.fromkeys(tags))


def new_event_id() -> str:
    return f"i{uuid.uuid4().hex[:16]}"


def normalize_entry(raw: dict[str, Any], source_name: str) -> NormalizedEvent:
    url = _first(raw, "link", "url")
    event_id = _first(raw, "id", "url", "link") or new_event_id()
    description = _first(raw, "content_snippet", "content", "description", "summary") or ""
    start = _first(raw, "start_date", "iso_date", "pub_date", "published")

    return NormalizedEvent(
        id=str(event_id),
        title=str(_first(raw, "title") or NO_TITLE).strip() or NO_TITLE,
        url=str(url) if url else None,
        description=str(description).strip(),
        start_date=to_iso(start),
        end_date=to_iso(raw.get("end_date")),
        source=source_name,
        location=str(raw["location"]) if raw.get("location") else None,
        tags=_tags(raw),
    )


def event_key(event: NormalizedEvent) -> str:
    return event.url or event.title


def _earlier(a: str | None, b: str | None) -> str | None:
    if a is None:
        return b
    if b is None:
        return a
    da, db = parse_datetime(a), parse_datetime(b)
    if da is None:
        return b
    if db is None:
        return a
    return b if db < da else a


def merge_events(batches: Iterable[Iterable[NormalizedEvent]]) -> list[NormalizedEvent]:
    """Merge per-source lists keyed by url-or-title, keeping first-seen order.

    On collision the tag sets are unioned and the earliest start date is kept.
    """
    merged: dict[str, NormalizedEvent] = {}
    for batch in batches:
        for ev in batch:
            key = event_key(ev)
            existing = merged.get(key)
            if existing is None:
                merged[key] = NormalizedEvent(**{**ev.to_dict(), "tags": list(ev.tags)})
                continue
            existing.tags = list(dict.fromkeys(existing.tags + ev.tags))
            existing.start_date = _earlier(existing.start_date, ev.start_date)
    return list(merged.values())


def _matches(ev: NormalizedEvent, needle: str) -> bool:
    haystack = " ".join([ev.title, ev.description, " ".join(ev.tags)]).lower()
    return needle in haystack


def _sort_key(ev: NormalizedEvent) -> tuple:
    dt = parse_datetime(ev.start_date)
    if dt is None:
        return (1, 0.0)
    return (0, dt.timestamp())


def query_events(
    events: Iterable[NormalizedEvent],
    *,
    q: str | None = None,
    upcoming_only: bool = False,
    now: datetime | None = None,
) -> list[NormalizedEvent]:
    """Filter by text and start date, then stable-sort by start (None last)."""
    results = list(events)
    needle = (q or "").strip().lower()
    if needle:
        results = [ev for ev in results if _matches(ev, needle)]
    if upcoming_only:
        now = _as_utc(now or datetime.now(timezone.utc))
        kept = []
        for ev in results:
            start = parse_datetime(ev.start_date)
            if start is None or start >= now:
                kept.append(ev)
        results = kept
    return sorted(results, key=_sort_key)
