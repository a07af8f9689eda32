"""RSS/Atom parsing and tolerant HTML extraction of competition listings."""
from __future__ import annotations

from typing import Any, Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from campushub.errors import ParseError
from campushub.log import get_logger
from campushub.normalize import to_iso

log = get_logger(__name__)

GENERIC_ITEM_SELECTORS: list[str] = [
    ".event",
    ".event-card",
    ".hackathon",
    ".hackathon-tile",
    ".challenge-listing",
    ".listing",
    ".card",
    "article",
    "li",
]

FIELD_FALLBACKS: dict[str, str] = {
    "title": "h1, h2, h3",
    "link": "a[href]",
    "desc": "p",
    "image": "img[src]",
    "date": "time[datetime], time, .date",
}

MIN_ANCHOR_TEXT = 8
MAX_ANCHOR_ITEMS = 200

FEED_MARKERS = ("<rss", "<feed", "<?xml", "<rdf:rdf")


def looks_like_feed(body: str) -> bool:
    head = (body or "")[:2000].lower()
    return any(m in head for m in FEED_MARKERS)


def _text(el) -> str:
    return el.get_text(" ", strip=True) if el is not None else ""


def _child_text(item, *names: str) -> str:
    for name in names:
        el = item.find(name)
        if el is not None:
            value = _text(el)
            if value:
                return value
    return ""


def _html_to_text(fragment: str) -> str:
    if not fragment:
        return ""
    if "<" not in fragment:
        return fragment.strip()
    return BeautifulSoup(fragment, "lxml").get_text(" ", strip=True)


def _rss_item(item) -> dict[str, Any]:
    content = _child_text(item, "encoded", "description")
    pub = _child_text(item, "pubDate", "date")
    return {
        "title": _child_text(item, "title"),
        "link": _child_text(item, "link") or None,
        "guid": _child_text(item, "guid") or None,
        "content": content,
        "content_snippet": _html_to_text(content),
        "pub_date": pub or None,
        "iso_date": to_iso(pub),
        "categories": [_text(c) for c in item.find_all("category") if _text(c)],
    }


def _atom_link(entry) -> str | None:
    links = entry.find_all("link")
    for link in links:
        if link.get("href") and link.get("rel") in (None, "alternate"):
            return link["href"]
    for link in links:
        if link.get("href"):
            return link["href"]
    return None


def _atom_entry(entry) -> dict[str, Any]:
    content = _child_text(entry, "content", "summary")
    published = _child_text(entry, "published", "updated")
    return {
        "id": _child_text(entry, "id") or None,
        "title": _child_text(entry, "title"),
        "link": _atom_link(entry),
        "content": content,
        "content_snippet": _html_to_text(content),
        "pub_date": published or None,
        "iso_date": to_iso(published),
        "categories": [
            c.get("term") or _text(c) for c in entry.find_all("category") if c.get("term") or _text(c)
        ],
    }


def parse_feed(body: str) -> list[dict[str, Any]]:
    """Parse an RSS 2.0, RSS 1.0 (RDF) or Atom document into raw item dicts."""
    if not body or not body.strip():
        raise ParseError("empty feed body")
    try:
        soup = BeautifulSoup(body, "xml")
    except Exception as exc:
        raise ParseError(f"unparseable feed: {exc}") from exc

    if soup.find("feed") is not None:
        return [_atom_entry(e) for e in soup.find_all("entry")]
    if soup.find("rss") is not None or soup.find("RDF") is not None:
        return [_rss_item(i) for i in soup.find_all("item")]
    raise ParseError("document is not an RSS or Atom feed")


def _absolute(href: str | None, base_url: str) -> str | None:
    if not href:
        return None
    href = href.strip()
    if href.startswith(("javascript:", "mailto:", "#")):
        return None
    return href if href.startswith("http") else urljoin(base_url, href)


def _select_one(el, selector: str | None):
    if not selector:
        return None
    try:
        return el.select_one(selector)
    except Exception as exc:
        log.debug("Bad selector %r: %s", selector, exc)
        return None


def _field(el, selectors: dict[str, str], name: str):
    custom = selectors.get(name)
    found = _select_one(el, custom)
    if found is None:
        found = _select_one(el, FIELD_FALLBACKS[name])
    return found


def _extract_item(el, selectors: dict[str, str], base_url: str) -> dict[str, Any] | None:
    title_el = _field(el, selectors, "title")
    title = _text(title_el)
    first_link = el.select_one("a[href]") if el.name != "a" else el
    if not title:
        title = _text(first_link)
    if not title:
        return None

    link_el = _field(el, selectors, "link") or first_link
    href = link_el.get("href") if link_el is not None else None

    img_el = _field(el, selectors, "image")
    date_el = _field(el, selectors, "date")
    date_text = None
    if date_el is not None:
        date_text = date_el.get("datetime") or _text(date_el)

    return {
        "title": title,
        "link": _absolute(href, base_url),
        "description": _text(_field(el, selectors, "desc")),
        "image": _absolute(img_el.get("src"), base_url) if img_el is not None else None,
        "start_date": to_iso(date_text),
    }


def dedupe_items(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    seen: set[str] = set()
    out: list[dict[str, Any]] = []
    for it in items:
        key = it.get("link") or it.get("title")
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(it)
    return out


def _anchor_scan(soup, base_url: str) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    for a in soup.find_all("a", href=True):
        text = _text(a)
        if len(text) <= MIN_ANCHOR_TEXT:
            continue
        items.append({"title": text, "link": _absolute(a["href"], base_url), "description": ""})
        if len(items) >= MAX_ANCHOR_ITEMS:
            break
    return items


def extract_items(
    html: str, base_url: str, selectors: dict[str, str] | None = None
) -> list[dict[str, Any]]:
    """Selector-driven extraction that degrades to an anchor scan.

    Container selectors are tried in order (the source's ``item`` override
    first) and the first one that matches anything wins.
    """
    selectors = selectors or {}
    soup = BeautifulSoup(html or "", "lxml")

    candidates = ([selectors["item"]] if selectors.get("item") else []) + GENERIC_ITEM_SELECTORS
    containers: list = []
    for sel in candidates:
        try:
            containers = soup.select(sel)
        except Exception as exc:
            log.debug("Bad container selector %r: %s", sel, exc)
            continue
        if containers:
            log.debug("Container selector %r matched %d element(s)", sel, len(containers))
            break

    items: list[dict[str, Any]] = []
    for el in containers:
        item = _extract_item(el, selectors, base_url)
        if item:
            items.append(item)

    if not items:
        items = _anchor_scan(soup, base_url)
    return dedupe_items(items)


def parse_event_cards(html: str, base_url: str) -> list[dict[str, Any]]:
    """Listing pages built from ``.event-card`` blocks."""
    soup = BeautifulSoup(html or "", "lxml")
    items: list[dict[str, Any]] = []
    for card in soup.select(".event-card"):
        title = _text(card.select_one(".event-title"))
        if not title:
            continue
        link = card.select_one("a[href]")
        items.append({
            "title": title,
            "link": _absolute(link.get("href") if link else None, base_url),
            "description": _text(card.select_one(".event-desc")),
            "start_date": to_iso(_text(card.select_one(".event-date"))),
        })
    return items


HtmlParser = Callable[[str, str], list[dict[str, Any]]]

HTML_PARSERS: dict[str, HtmlParser] = {
    "event_cards": parse_event_cards,
    # legacy source-list name
    "exampleHtmlParser": parse_event_cards,
}
