"""Headless-browser tier: renders the page in Chromium and returns its HTML."""
from __future__ import annotations

from typing import Callable

from campushub import browser
from campushub.errors import UpstreamFetchError
from campushub.log import get_logger
from campushub.models import FetchResult
from campushub.retry import retry
from campushub.sources.base import FetchStrategy

log = get_logger(__name__)


class HeadlessFetch(FetchStrategy):
    name = "browser"
    screens_challenge = False

    def __init__(
        self,
        *,
        retries: int = 1,
        headless: bool = True,
        timeout_ms: int = browser.NAV_TIMEOUT_MS,
        renderer: Callable[..., str] | None = None,
    ) -> None:
        self.retries = max(1, retries)
        self.headless = headless
        self.timeout_ms = timeout_ms
        self._renderer = renderer

    @retry(max_attempts=1, base_delay=1.0, jitter=False, retryable=(UpstreamFetchError,))
    def _render(self, url: str, wait_selector: str | None) -> str:
        render = self._renderer or browser.render_html
        return render(
            url,
            headless=self.headless,
            timeout_ms=self.timeout_ms,
            wait_selector=wait_selector,
        )

    def fetch(self, url: str, *, wait_selector: str | None = None) -> FetchResult:
        html = self._render(url, wait_selector, _attempts=self.retries)
        return FetchResult(status=200, body=html, via=self.name)
