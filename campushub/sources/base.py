from abc import ABC, abstractmethod

from campushub.models import FetchResult


class FetchStrategy(ABC):
    """One fallback tier: obtains a page body for a URL or raises UpstreamFetchError."""

    name: str = "base"
    # Tiers that only make sense once a bot challenge has been seen.
    requires_challenge: bool = False
    # Whether responses from this tier are screened for challenge pages.
    screens_challenge: bool = True

    @abstractmethod
    def fetch(self, url: str, *, wait_selector: str | None = None) -> FetchResult:
        pass
