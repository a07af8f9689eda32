import time
from unittest.mock import MagicMock

import pytest
import requests

from campushub.errors import UpstreamFetchError
from campushub.sources import (
    DirectFetch,
    HeadlessFetch,
    ProxyFetch,
    build_proxy_url,
    get_strategies,
    is_challenge,
)


@pytest.fixture
def no_sleep(monkeypatch):
    delays = []
    monkeypatch.setattr(time, "sleep", delays.append)
    return delays


def _response(status=200, text="<html>ok</html>"):
    r = MagicMock()
    r.status_code = status
    r.text = text
    r.headers = {"Content-Type": "text/html"}
    return r


def test_is_challenge_on_403_and_markers():
    assert is_challenge(403, "")
    assert is_challenge(200, "<title>Just a moment...</title>")
    assert is_challenge(503, "Please complete the Bot Verification")
    assert not is_challenge(200, "<html><h1>Hackathons</h1></html>")


def test_is_challenge_only_sniffs_the_head_of_the_body():
    body = "x" * 2500 + "cloudflare"
    assert not is_challenge(200, body)


def test_build_proxy_url_per_provider():
    assert build_proxy_url("scraperapi", "k y", "https://a.test/?q=1") == (
        "https://api.scraperapi.com?api_key=k%20y&url=https%3A%2F%2Fa.test%2F%3Fq%3D1&render=true"
    )
    assert build_proxy_url("scrapingbee", "key", "https://a.test/") == (
        "https://app.scrapingbee.com/api/v1/?api_key=key&url=https%3A%2F%2Fa.test%2F&render_js=true"
    )
    with pytest.raises(UpstreamFetchError):
        build_proxy_url("other", "key", "https://a.test/")


def test_direct_fetch_sends_browser_headers():
    session = MagicMock()
    session.get.return_value = _response(200, "<rss/>")
    result = DirectFetch(session=session).fetch("https://feed.test/rss")

    assert result.status == 200
    assert result.body == "<rss/>"
    assert result.via == "direct"
    headers = session.get.call_args.kwargs["headers"]
    assert "Mozilla/5.0" in headers["User-Agent"]
    assert session.get.call_args.kwargs["timeout"] == 20.0


def test_direct_fetch_retries_with_linear_backoff(no_sleep):
    session = MagicMock()
    session.get.side_effect = [
        requests.ConnectionError("reset"),
        requests.Timeout("slow"),
        _response(200),
    ]
    result = DirectFetch(session=session, retries=3).fetch("https://a.test/")

    assert result.status == 200
    assert session.get.call_count == 3
    assert no_sleep == [pytest.approx(0.3), pytest.approx(0.6)]


def test_direct_fetch_gives_up_with_upstream_error(no_sleep):
    session = MagicMock()
    session.get.side_effect = requests.Timeout("slow")
    with pytest.raises(UpstreamFetchError):
        DirectFetch(session=session, retries=2).fetch("https://a.test/")
    assert session.get.call_count == 2


def test_direct_fetch_returns_error_statuses_to_caller():
    session = MagicMock()
    session.get.return_value = _response(404, "missing")
    assert DirectFetch(session=session).fetch("https://a.test/").status == 404


def test_proxy_fetch_goes_through_provider():
    session = MagicMock()
    session.get.return_value = _response(200, "<html>rendered</html>")
    tier = ProxyFetch("ScrapingBee", "key", session=session)

    result = tier.fetch("https://a.test/")
    assert tier.requires_challenge
    assert result.via == "scrapingbee"
    assert session.get.call_args.args[0].startswith("https://app.scrapingbee.com/api/v1/")


def test_proxy_fetch_network_error_is_upstream_error():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("down")
    with pytest.raises(UpstreamFetchError):
        ProxyFetch("scraperapi", "key", session=session).fetch("https://a.test/")


def test_headless_fetch_retries_renderer(no_sleep):
    calls = []

    def renderer(url, **kw):
        calls.append(kw["wait_selector"])
        if len(calls) < 2:
            raise UpstreamFetchError("navigation timeout")
        return "<html>ok</html>"

    tier = HeadlessFetch(retries=2, renderer=renderer)
    result = tier.fetch("https://a.test/", wait_selector=".tile")
    assert result.body == "<html>ok</html>"
    assert result.via == "browser"
    assert calls == [".tile", ".tile"]
    assert not tier.screens_challenge


def test_headless_fetch_exhausted_raises(no_sleep):
    def renderer(url, **kw):
        raise UpstreamFetchError("navigation timeout")

    with pytest.raises(UpstreamFetchError):
        HeadlessFetch(retries=2, renderer=renderer).fetch("https://a.test/")


def test_get_strategies_order_follows_env():
    env = {
        "SCRAPER_PROVIDER": "scraperapi",
        "SCRAPER_API_KEY": "k",
        "BROWSER_ENABLED": "true",
        "FETCH_RETRIES": "4",
    }
    tiers = get_strategies(lambda key: env.get(key, ""))
    assert [t.name for t in tiers] == ["direct", "scraperapi", "browser"]
    assert tiers[0].retries == 4


def test_get_strategies_skips_unconfigured_tiers():
    env = {"SCRAPER_PROVIDER": "unknown", "SCRAPER_API_KEY": "k", "BROWSER_ENABLED": "false"}
    tiers = get_strategies(lambda key: env.get(key, ""))
    assert [t.name for t in tiers] == ["direct"]
