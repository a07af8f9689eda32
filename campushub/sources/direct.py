"""Plain HTTP fetch with browser-like headers and challenge-page detection."""
from __future__ import annotations

import requests

from campushub.errors import UpstreamFetchError
from campushub.log import get_logger
from campushub.models import FetchResult
from campushub.retry import retry
from campushub.sources.base import FetchStrategy

log = get_logger(__name__)

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

CHALLENGE_MARKERS: tuple[str, ...] = (
    "just a moment",
    "enable javascript and cookies",
    "cloudflare",
    "incapsula",
    "attention required",
    "bot verification",
    "waf",
)
CHALLENGE_SNIFF_CHARS = 2000


def is_challenge(status: int, body: str | None) -> bool:
    """True when a response looks like an anti-bot interstitial."""
    if status == 403:
        return True
    snippet = (body or "")[:CHALLENGE_SNIFF_CHARS].lower()
    return any(marker in snippet for marker in CHALLENGE_MARKERS)


class DirectFetch(FetchStrategy):
    name = "direct"

    def __init__(
        self,
        *,
        retries: int = 2,
        timeout: float = 20.0,
        session: requests.Session | None = None,
    ) -> None:
        self.retries = max(1, retries)
        self.timeout = timeout
        self.session = session or requests.Session()

    @retry(
        max_attempts=2,
        base_delay=0.3,
        backoff="linear",
        jitter=False,
        retryable=(requests.RequestException, OSError),
    )
    def _get(self, url: str, headers: dict[str, str] | None = None) -> requests.Response:
        return self.session.get(
            url,
            headers={**DEFAULT_HEADERS, **(headers or {})},
            timeout=self.timeout,
            allow_redirects=True,
        )

    def fetch(self, url: str, *, wait_selector: str | None = None) -> FetchResult:
        try:
            r = self._get(url, _attempts=self.retries)
        except (requests.RequestException, OSError) as exc:
            raise UpstreamFetchError(f"GET {url} failed: {exc}") from exc
        log.debug("GET %s → %d (%d chars)", url, r.status_code, len(r.text or ""))
        return FetchResult(
            status=r.status_code,
            body=r.text or "",
            headers=dict(r.headers),
            via=self.name,
        )
