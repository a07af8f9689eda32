from .base import FetchStrategy
from .direct import DirectFetch, is_challenge
from .proxy import ProxyFetch, build_proxy_url
from .headless import HeadlessFetch

from campushub.log import get_logger

log = get_logger(__name__)

__all__ = [
    "FetchStrategy", "DirectFetch", "ProxyFetch", "HeadlessFetch",
    "is_challenge", "build_proxy_url", "get_strategies",
]


def _int(env_getter, key: str, default: int) -> int:
    try:
        return int(env_getter(key) or default)
    except ValueError:
        return default


def get_strategies(env_getter) -> list[FetchStrategy]:
    """Fallback tiers in the order they are attempted."""
    strategies: list[FetchStrategy] = [DirectFetch(retries=_int(env_getter, "FETCH_RETRIES", 2))]
    log.info("Registered fetch tier: direct")

    provider = (env_getter("SCRAPER_PROVIDER") or "").lower()
    api_key = env_getter("SCRAPER_API_KEY")
    if provider and api_key:
        if provider in ("scraperapi", "scrapingbee"):
            strategies.append(ProxyFetch(provider, api_key))
            log.info("Registered fetch tier: %s proxy", provider)
        else:
            log.warning("Unknown SCRAPER_PROVIDER %r — proxy tier disabled", provider)

    if (env_getter("BROWSER_ENABLED") or "true").lower() in ("1", "true", "yes"):
        headless = (env_getter("RUN_HEADLESS") or "true").lower() in ("1", "true", "yes")
        strategies.append(HeadlessFetch(retries=_int(env_getter, "BROWSER_RETRIES", 1), headless=headless))
        log.info("Registered fetch tier: headless browser")

    return strategies
