"""
Competitions aggregator.

Runs: fan out across sources → per-source fallback tiers (direct → proxy →
headless browser) → parse → normalize → merge/dedupe → cache → query.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable

import requests

from campushub.cache import EventCache
from campushub.errors import NotFound, ParseError, UpstreamFetchError
from campushub.log import get_logger
from campushub.models import FetchResult, NormalizedEvent, SourceDescriptor
from campushub.normalize import merge_events, normalize_entry, query_events
from campushub.parsers import HTML_PARSERS, extract_items, looks_like_feed, parse_feed
from campushub.sources import FetchStrategy, is_challenge
from campushub.sources.direct import DEFAULT_HEADERS

log = get_logger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 200
PREVIEW_CHARS = 2000
SAMPLE_SIZE = 10


def clamp_limit(limit: Any) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, value))


def parse_body(src: SourceDescriptor, result: FetchResult) -> list[dict[str, Any]]:
    """Turn one fetched body into raw item dicts, or raise ParseError."""
    try:
        return _parse_items(src, result)
    except ParseError:
        raise
    except Exception as exc:
        raise ParseError(f"{src.id}: parsing body via {result.via} failed: {exc}") from exc


def _parse_items(src: SourceDescriptor, result: FetchResult) -> list[dict[str, Any]]:
    if src.type == "rss":
        try:
            return parse_feed(result.body)
        except ParseError as exc:
            if src.selectors and not looks_like_feed(result.body):
                items = extract_items(result.body, src.url, src.selectors)
                if items:
                    log.info("[%s] not a feed via %s — used selectors (%d items)", src.id, result.via, len(items))
                    return items
            raise ParseError(f"{src.id}: {exc}") from exc

    parser = HTML_PARSERS.get(src.parser) if src.parser else None
    if src.parser and parser is None:
        log.warning("[%s] no HTML parser named %r — using generic extractor", src.id, src.parser)
    if parser is not None:
        try:
            items = parser(result.body, src.url)
        except Exception as exc:
            raise ParseError(f"{src.id}: parser {src.parser!r} failed: {exc}") from exc
    else:
        items = extract_items(result.body, src.url, src.selectors)
    if not items:
        raise ParseError(f"{src.id}: no items found in page via {result.via}")
    return items


class Aggregator:
    def __init__(
        self,
        sources: list[SourceDescriptor],
        strategies: list[FetchStrategy],
        *,
        cache: EventCache | None = None,
        max_workers: int = 8,
        now: Callable[[], datetime] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.sources = list(sources)
        self.strategies = list(strategies)
        self.cache = cache or EventCache()
        self.max_workers = max(1, max_workers)
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._session = session or requests.Session()

    # ── per-source chain ─────────────────────────────────────────────────

    def fetch_raw_items(self, src: SourceDescriptor) -> list[dict[str, Any]]:
        """Walk the tiers in order until one yields parseable items.

        Raises UpstreamFetchError when every tier is exhausted.
        """
        challenged = False
        errors: list[str] = []

        for tier in self.strategies:
            if tier.requires_challenge and not challenged:
                continue
            try:
                result = tier.fetch(src.url, wait_selector=src.wait_selector)
            except UpstreamFetchError as exc:
                log.info("[%s] %s tier failed: %s", src.id, tier.name, exc)
                errors.append(f"{tier.name}: {exc}")
                continue

            if tier.screens_challenge and is_challenge(result.status, result.body):
                challenged = True
                log.warning("[%s] challenge page via %s (status %d)", src.id, tier.name, result.status)
                errors.append(f"{tier.name}: challenge (status {result.status})")
                continue
            if result.status >= 400:
                log.warning("[%s] %s returned status %d", src.id, tier.name, result.status)
                errors.append(f"{tier.name}: status {result.status}")
                continue

            try:
                items = parse_body(src, result)
            except ParseError as exc:
                log.info("[%s] parse failed after %s tier: %s", src.id, tier.name, exc)
                errors.append(f"{tier.name}: {exc}")
                continue

            log.debug("[%s] %d raw item(s) via %s", src.id, len(items), tier.name)
            return items

        raise UpstreamFetchError(f"{src.id}: all tiers exhausted ({'; '.join(errors) or 'no tiers'})")

    def fetch_source(self, src: SourceDescriptor) -> list[NormalizedEvent]:
        """Normalized events for one source; failures are logged and yield []."""
        try:
            raw = self.fetch_raw_items(src)
        except UpstreamFetchError as exc:
            log.warning("[%s] FAILED: %s", src.name, exc)
            return []
        except Exception as exc:
            log.error("[%s] unexpected error: %s", src.name, exc, exc_info=True)
            return []
        events = [normalize_entry(it, src.name) for it in raw]
        log.info("[%s] returned %d event(s)", src.name, len(events))
        return events

    # ── aggregation ──────────────────────────────────────────────────────

    def refresh(self) -> list[NormalizedEvent]:
        """Fetch every source concurrently, merge, and repopulate the cache."""
        if not self.sources:
            self.cache.put([])
            return []

        log.info("Fetching %d source(s) in parallel...", len(self.sources))
        workers = min(self.max_workers, len(self.sources))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="source") as pool:
            # map keeps source order so the merge is deterministic
            batches = list(pool.map(self.fetch_source, self.sources))

        merged = merge_events(batches)
        self.cache.put(merged)
        log.info(
            "Aggregated %d unique event(s) from %d raw across %d source(s)",
            len(merged), sum(len(b) for b in batches), len(self.sources),
        )
        return merged

    def list_events(
        self,
        q: str | None = None,
        upcoming_only: bool = False,
        limit: Any = DEFAULT_LIMIT,
    ) -> dict[str, Any]:
        limit = clamp_limit(limit)
        cached = self.cache.get()
        # an empty cached pass is retried rather than served
        if cached:
            origin, events = "cache", cached
        else:
            origin, events = "live", self.refresh()

        results = query_events(events, q=q, upcoming_only=upcoming_only, now=self._now())
        return {
            "source": origin,
            "count": len(results),
            "items": [ev.to_dict() for ev in results[:limit]],
        }

    def list_sources(self) -> list[dict[str, str]]:
        return [s.summary() for s in self.sources]

    def get_source(self, source_id: str) -> SourceDescriptor:
        for s in self.sources:
            if s.id == source_id:
                return s
        raise NotFound(f"source not found: {source_id}")

    # ── diagnostics ──────────────────────────────────────────────────────

    def debug_source(self, source_id: str) -> dict[str, Any]:
        """Run one source's chain, bypassing the cache."""
        src = self.get_source(source_id)
        try:
            raw = self.fetch_raw_items(src)
        except UpstreamFetchError as exc:
            return {"ok": False, "source": src.summary(), "error": str(exc)}
        return {
            "ok": True,
            "source": src.summary(),
            "item_count": len(raw),
            "items_sample": raw[:SAMPLE_SIZE],
        }

    def debug_raw(self, url: str, timeout: float = 20.0) -> dict[str, Any]:
        """Status, headers and body preview for any URL. Never raises."""
        try:
            r = self._session.get(url, headers=DEFAULT_HEADERS, timeout=timeout)
        except (requests.RequestException, OSError) as exc:
            return {"ok": False, "error": str(exc)}
        text = r.text or ""
        return {
            "ok": True,
            "status": r.status_code,
            "headers": dict(r.headers),
            "body_preview": text[:PREVIEW_CHARS],
            "challenge": is_challenge(r.status_code, text),
        }
