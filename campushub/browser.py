"""
Headless Chromium rendering for sources that block plain HTTP clients.

Uses Playwright with a stealth-configured context (desktop UA, viewport,
browser-like headers, CSP bypass, ``navigator.webdriver`` masked). The
browser is scoped by ``browser_page``: it is closed on every exit path.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from campushub.errors import UpstreamFetchError
from campushub.log import get_logger

log = get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
    "--disable-blink-features=AutomationControlled",
    "--window-position=0,0",
]
STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
Object.defineProperty(navigator, 'plugins', {get: () => [1, 2, 3, 4, 5]});
window.chrome = window.chrome || {runtime: {}};
"""

NAV_TIMEOUT_MS = 40_000
SELECTOR_TIMEOUT_MS = 15_000
SETTLE_MS = 1_500


def _playwright():
    _pw = os.environ.get("PLAYWRIGHT_BROWSERS_PATH", "")
    if _pw and not Path(_pw).exists():
        os.environ.pop("PLAYWRIGHT_BROWSERS_PATH", None)
    from playwright.sync_api import sync_playwright

    return sync_playwright()


@contextmanager
def browser_page(*, headless: bool = True, timeout_ms: int = NAV_TIMEOUT_MS) -> Iterator:
    """Yield a fresh stealth page; the browser is closed however the block exits."""
    with _playwright() as p:
        browser = p.chromium.launch(headless=headless, args=LAUNCH_ARGS)
        try:
            context = browser.new_context(
                user_agent=USER_AGENT,
                viewport={"width": 1366, "height": 768},
                locale="en-US",
                bypass_csp=True,
                ignore_https_errors=True,
                extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
            )
            context.add_init_script(STEALTH_SCRIPT)
            page = context.new_page()
            page.set_default_timeout(timeout_ms)
            yield page
        finally:
            try:
                browser.close()
            except Exception as exc:
                log.debug("Browser close raised: %s", exc)


def render_html(
    url: str,
    *,
    headless: bool = True,
    timeout_ms: int = NAV_TIMEOUT_MS,
    wait_selector: str | None = None,
    selector_timeout_ms: int = SELECTOR_TIMEOUT_MS,
    settle_ms: int = SETTLE_MS,
) -> str:
    """Navigate, wait for network idle plus a settle delay, return rendered HTML."""
    try:
        from playwright.sync_api import Error as PlaywrightError
    except ImportError as exc:
        raise UpstreamFetchError(
            "Playwright not installed — `pip install playwright && playwright install chromium`"
        ) from exc

    try:
        with browser_page(headless=headless, timeout_ms=timeout_ms) as page:
            page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            page.wait_for_timeout(settle_ms)
            if wait_selector:
                try:
                    page.wait_for_selector(wait_selector, timeout=selector_timeout_ms, state="visible")
                except PlaywrightError as exc:
                    log.warning("Selector %r never appeared on %s: %s", wait_selector, url, exc)
            html = page.content()
    except PlaywrightError as exc:
        msg = str(exc).split("\n")[0][:200]
        raise UpstreamFetchError(f"headless render failed for {url}: {msg}") from exc

    log.debug("Rendered %s (%d chars)", url, len(html))
    return html
