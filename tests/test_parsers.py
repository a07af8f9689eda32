import pytest

from campushub.errors import ParseError
from campushub.parsers import (
    MAX_ANCHOR_ITEMS,
    dedupe_items,
    extract_items,
    looks_like_feed,
    parse_event_cards,
    parse_feed,
)
from tests.helpers import rss

ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Challenges</title>
  <entry>
    <id>tag:challenges,2026:1</id>
    <title>Climate Datathon</title>
    <link rel="self" href="https://c.test/self/1"/>
    <link rel="alternate" href="https://c.test/events/1"/>
    <summary>&lt;p&gt;Model &lt;b&gt;emissions&lt;/b&gt;&lt;/p&gt;</summary>
    <published>2026-08-10T09:00:00Z</published>
    <category term="data"/>
  </entry>
</feed>"""


def test_parse_rss_items():
    body = rss(
        ("Hack the Planet", "https://h.test/1", "Tue, 10 Mar 2026 12:00:00 GMT", ["security", "ctf"]),
        ("No date", "https://h.test/2", None, []),
    )
    items = parse_feed(body)
    assert len(items) == 2
    first = items[0]
    assert first["title"] == "Hack the Planet"
    assert first["link"] == "https://h.test/1"
    assert first["content_snippet"] == "About Hack the Planet"
    assert first["iso_date"] == "2026-03-10T12:00:00.000Z"
    assert first["categories"] == ["security", "ctf"]
    assert items[1]["iso_date"] is None


def test_parse_atom_entries():
    (entry,) = parse_feed(ATOM)
    assert entry["id"] == "tag:challenges,2026:1"
    assert entry["link"] == "https://c.test/events/1"
    assert entry["content_snippet"] == "Model emissions"
    assert entry["iso_date"] == "2026-08-10T09:00:00.000Z"
    assert entry["categories"] == ["data"]


def test_parse_feed_rejects_html_and_empty():
    with pytest.raises(ParseError):
        parse_feed("<html><body><h1>Just a page</h1></body></html>")
    with pytest.raises(ParseError):
        parse_feed("   ")


def test_looks_like_feed():
    assert looks_like_feed(rss())
    assert not looks_like_feed("<!doctype html><html></html>")


def test_extract_items_with_source_selectors():
    html = """
    <div class="tile"><span class="name">Space Apps</span>
      <a class="go" href="/e/space">Go</a><div class="when">2026-10-02</div>
      <img src="/img/space.png"></div>
    <div class="tile"><span class="name">Bad Date</span>
      <a class="go" href="https://other.test/x">Go</a><div class="when">whenever</div></div>
    """
    selectors = {"item": ".tile", "title": ".name", "link": "a.go", "date": ".when"}
    items = extract_items(html, "https://events.test/list", selectors)
    assert [i["title"] for i in items] == ["Space Apps", "Bad Date"]
    assert items[0]["link"] == "https://events.test/e/space"
    assert items[0]["image"] == "https://events.test/img/space.png"
    assert items[0]["start_date"] == "2026-10-02T00:00:00.000Z"
    assert items[1]["link"] == "https://other.test/x"
    assert items[1]["start_date"] is None


def test_extract_items_generic_container_fallback():
    html = """
    <div class="card"><h3>Open Source Week</h3><a href="/oss">details</a>
      <p>Contribute patches</p><time datetime="2026-11-01T00:00:00Z">Nov 1</time></div>
    <div class="card"><h3>Open Source Week</h3><a href="/oss">dup</a></div>
    """
    items = extract_items(html, "https://site.test/")
    assert len(items) == 1
    assert items[0] == {
        "title": "Open Source Week",
        "link": "https://site.test/oss",
        "description": "Contribute patches",
        "image": None,
        "start_date": "2026-11-01T00:00:00.000Z",
    }


def test_extract_items_anchor_scan_when_no_containers():
    anchors = "".join(f'<a href="/c/{n}">Competition number {n}</a>' for n in range(250))
    html = f'<div><a href="/">Home</a>{anchors}</div>'
    items = extract_items(html, "https://site.test/")
    assert len(items) == MAX_ANCHOR_ITEMS
    assert items[0] == {"title": "Competition number 0", "link": "https://site.test/c/0", "description": ""}


def test_dedupe_items_uses_link_then_title():
    items = dedupe_items([
        {"title": "a", "link": "https://x"},
        {"title": "b", "link": "https://x"},
        {"title": "c", "link": None},
        {"title": "c", "link": None},
    ])
    assert [i["title"] for i in items] == ["a", "c"]


def test_event_cards_parser():
    html = """
    <div class="event-card"><a href="/hack">x</a><div class="event-title">Campus Hack</div>
      <div class="event-desc">24h</div><div class="event-date">March 3, 2026</div></div>
    <div class="event-card"><div class="event-title"></div></div>
    """
    items = parse_event_cards(html, "https://uni.test/events")
    assert items == [{
        "title": "Campus Hack",
        "link": "https://uni.test/hack",
        "description": "24h",
        "start_date": "2026-03-03T00:00:00.000Z",
    }]


def test_extract_items_ignores_relative_or_partial_dates():
    html = """
    <div class="card"><h3>Robo Cup</h3><a href="/robo">Open</a><span class="date">Ends in 3 days</span></div>
    <div class="card"><h3>Spring Jam</h3><a href="/jam">Open</a><span class="date">March</span></div>
    """
    items = extract_items(html, "https://events.test/")
    assert [i["title"] for i in items] == ["Robo Cup", "Spring Jam"]
    assert [i["start_date"] for i in items] == [None, None]
