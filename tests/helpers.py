"""Test doubles and builders shared across test modules."""
import json

from campushub.errors import UpstreamFetchError
from campushub.models import FetchResult, SourceDescriptor
from campushub.sources.base import FetchStrategy

USERS = [
    {"id": "u1", "name": "Alice", "skills": ["React", " node "], "experienceLevel": "senior", "available": True},
    {"id": "u2", "name": "Bob", "skills": ["react"], "experienceLevel": "junior", "available": True},
    {"id": "u3", "name": "Cara", "skills": ["python"], "experienceLevel": "mid", "available": False},
    {"id": "u4", "name": "Dev", "skills": ["go", "rust"], "experienceLevel": "mid", "available": True},
]

PROJECTS = [
    {"id": "p1", "title": "Portal", "skills": ["react", "node"]},
    {"id": 42, "title": "Numeric id", "skills": ["python"]},
]


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class FakeTier(FetchStrategy):
    """Scripted fetch tier: ``responses`` maps URL → FetchResult or exception.

    URLs without a scripted response behave like a timeout.
    """

    def __init__(self, name, responses=None, *, requires_challenge=False, screens_challenge=True):
        self.name = name
        self.responses = responses or {}
        self.requires_challenge = requires_challenge
        self.screens_challenge = screens_challenge
        self.calls = []

    def fetch(self, url, *, wait_selector=None):
        self.calls.append(url)
        outcome = self.responses.get(url)
        if outcome is None:
            raise UpstreamFetchError(f"{self.name}: timed out fetching {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return FetchResult(status=outcome.status, body=outcome.body, headers={}, via=self.name)


def ok(body, status=200):
    return FetchResult(status=status, body=body)


def rss(*items):
    """Tiny RSS 2.0 document from (title, link, pubDate, categories) tuples."""
    parts = []
    for title, link, pub, cats in items:
        cat_xml = "".join(f"<category>{c}</category>" for c in cats)
        pub_xml = f"<pubDate>{pub}</pubDate>" if pub else ""
        parts.append(
            f"<item><title>{title}</title><link>{link}</link>"
            f"<description>About {title}</description>{pub_xml}{cat_xml}</item>"
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?><rss version="2.0"><channel>'
        "<title>Feed</title><link>https://feed.example.com</link>"
        + "".join(parts)
        + "</channel></rss>"
    )


def source(src_id, url, type="rss", **kw):
    return SourceDescriptor(id=src_id, name=src_id.title(), type=type, url=url, **kw)
