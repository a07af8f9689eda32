"""Anti-bot rendering proxies (ScraperAPI, ScrapingBee).

Only used after a challenge page was detected, and only when
SCRAPER_PROVIDER and SCRAPER_API_KEY are both set.
"""
from __future__ import annotations

from urllib.parse import quote

import requests

from campushub.errors import UpstreamFetchError
from campushub.log import get_logger
from campushub.models import FetchResult
from campushub.sources.base import FetchStrategy

log = get_logger(__name__)

PROVIDERS = ("scraperapi", "scrapingbee")


def build_proxy_url(provider: str, api_key: str, target_url: str) -> str:
    key = quote(api_key, safe="")
    target = quote(target_url, safe="")
    if provider == "scraperapi":
        return f"https://api.scraperapi.com?api_key={key}&url={target}&render=true"
    if provider == "scrapingbee":
        return f"https://app.scrapingbee.com/api/v1/?api_key={key}&url={target}&render_js=true"
    raise UpstreamFetchError(f"Unknown SCRAPER_PROVIDER: {provider}")


class ProxyFetch(FetchStrategy):
    requires_challenge = True

    def __init__(
        self,
        provider: str,
        api_key: str,
        *,
        timeout: float = 45.0,
        session: requests.Session | None = None,
    ) -> None:
        self.provider = provider.lower().strip()
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.name = self.provider

    def fetch(self, url: str, *, wait_selector: str | None = None) -> FetchResult:
        proxy_url = build_proxy_url(self.provider, self.api_key, url)
        log.info("Fetching %s through %s", url, self.provider)
        try:
            r = self.session.get(proxy_url, timeout=self.timeout)
        except (requests.RequestException, OSError) as exc:
            raise UpstreamFetchError(f"{self.provider} request for {url} failed: {exc}") from exc
        return FetchResult(status=r.status_code, body=r.text or "", headers=dict(r.headers), via=self.provider)
