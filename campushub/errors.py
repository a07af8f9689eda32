"""Error taxonomy shared by the allocator, the aggregator and the API."""


class CampusHubError(Exception):
    """Base exception for campushub errors."""
    pass


class ValidationError(CampusHubError):
    """Required input is missing or malformed."""
    pass


class NotFound(CampusHubError):
    """A referenced project, assignment or source does not exist."""
    pass


class UpstreamFetchError(CampusHubError):
    """A source could not be fetched (network error, timeout, challenge page)."""
    pass


class ParseError(CampusHubError):
    """A fetched body could not be parsed into events."""
    pass
