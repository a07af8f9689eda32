import pytest

pytest.importorskip("playwright")

from playwright.sync_api import Error as PlaywrightError

from campushub import browser
from campushub.errors import UpstreamFetchError


class FakePage:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.visited = []

    def set_default_timeout(self, ms):
        self.timeout = ms

    def goto(self, url, **kw):
        self.visited.append(url)
        if self.fail_on == "goto":
            raise PlaywrightError("Timeout 40000ms exceeded")

    def wait_for_timeout(self, ms):
        pass

    def wait_for_selector(self, selector, **kw):
        if self.fail_on == "selector":
            raise PlaywrightError("waiting for selector")

    def content(self):
        return "<html><div class='tile'>x</div></html>"


class FakeContext:
    def __init__(self, page):
        self.page = page
        self.scripts = []

    def add_init_script(self, script):
        self.scripts.append(script)

    def new_page(self):
        return self.page


class FakeBrowser:
    def __init__(self, page):
        self.context = FakeContext(page)
        self.closed = False

    def new_context(self, **kw):
        self.context_kwargs = kw
        return self.context

    def close(self):
        self.closed = True


class FakePlaywright:
    def __init__(self, page):
        self.browser = FakeBrowser(page)
        self.chromium = self

    def launch(self, **kw):
        self.launch_kwargs = kw
        return self.browser

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def fake_pw(monkeypatch):

    def install(fail_on=None):
        pw = FakePlaywright(FakePage(fail_on))
        monkeypatch.setattr(browser, "_playwright", lambda: pw)
        return pw

    return install


def test_render_returns_html_and_closes_browser(fake_pw):
    pw = fake_pw()
    html = browser.render_html("https://a.test/", wait_selector=".tile")
    assert "tile" in html
    assert pw.browser.closed
    assert pw.launch_kwargs["headless"] is True
    assert pw.browser.context_kwargs["bypass_csp"] is True
    assert "webdriver" in pw.browser.context.scripts[0]


def test_navigation_failure_closes_browser_and_raises_upstream(fake_pw):
    pw = fake_pw(fail_on="goto")
    with pytest.raises(UpstreamFetchError):
        browser.render_html("https://a.test/")
    assert pw.browser.closed


def test_missing_selector_still_returns_rendered_page(fake_pw):
    pw = fake_pw(fail_on="selector")
    html = browser.render_html("https://a.test/", wait_selector=".never")
    assert html.startswith("<html>")
    assert pw.browser.closed


def test_browser_page_closes_on_caller_exception(fake_pw):
    pw = fake_pw()
    with pytest.raises(RuntimeError):
        with browser.browser_page() as page:
            page.goto("https://a.test/")
            raise RuntimeError("parse blew up")
    assert pw.browser.closed
