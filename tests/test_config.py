import textwrap

from campushub import config


def _write(tmp_path, text):
    path = tmp_path / "sources.yaml"
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


def test_load_sources_reads_entries(tmp_path):
    path = _write(tmp_path, """
        sources:
          - id: devpost
            name: Devpost
            type: rss
            url: https://devpost.com/hackathons.rss
          - id: uni
            type: HTML
            url: https://uni.test/events
            parser: event_cards
            wait_selector: .event-card
            puppeteerSelectors:
              item: .event-card
    """)
    devpost, uni = config.load_sources(path)

    assert devpost.name == "Devpost"
    assert devpost.selectors is None
    assert uni.name == "uni"
    assert uni.type == "html"
    assert uni.parser == "event_cards"
    assert uni.wait_selector == ".event-card"
    assert uni.selectors == {"item": ".event-card"}


def test_load_sources_skips_malformed_and_duplicates(tmp_path):
    path = _write(tmp_path, """
        sources:
          - id: ok
            type: rss
            url: https://a.test/rss
          - id: ok
            type: rss
            url: https://b.test/rss
          - id: no-url
            type: rss
          - id: bad-type
            type: json
            url: https://c.test
          - just a string
    """)
    sources = config.load_sources(path)
    assert [(s.id, s.url) for s in sources] == [("ok", "https://a.test/rss")]


def test_load_sources_missing_file(tmp_path):
    assert config.load_sources(tmp_path / "absent.yaml") == []


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("CH_FLAG", "Yes")
    monkeypatch.setenv("CH_INT", "x")
    monkeypatch.setenv("CH_FLOAT", "2.5")
    assert config.get_bool("CH_FLAG") is True
    assert config.get_bool("CH_UNSET", True) is True
    assert config.get_int("CH_INT", 7) == 7
    assert config.get_float("CH_FLOAT", 1.0) == 2.5


def test_cors_origins(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://a.test, ,https://b.test")
    assert config.cors_origins() == ["https://a.test", "https://b.test"]
