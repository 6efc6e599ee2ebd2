from __future__ import annotations

import json
import sys

import pytest

from lux_scraper import cli
from lux_scraper.models import Article, ScrapedItem, SourceEntry, SourceResult
from lux_scraper.store.sqlite import SqliteArticleStore

_ENV_VARS = (
    "LUX_STORE",
    "LUX_ENV",
    "LUX_DATA_ROOT",
    "SUPABASE_URL",
    "NEXT_PUBLIC_SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "NEXT_PUBLIC_SUPABASE_ANON_KEY",
    "RESEND_API_KEY",
    "ALERT_EMAIL",
    "PLAYWRIGHT_CHROMIUM_PATH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def run_cli(args, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["lux-scraper", *args])
    return cli.main()


def test_sources_json(monkeypatch, capsys):
    assert run_cli(["sources", "--json"], monkeypatch) == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload) == 15
    cmx = next(entry for entry in payload if entry["name"] == "CMX")
    assert cmx["enabled"] is False
    assert {"name", "kind", "sector", "weight", "enabled"} <= set(payload[0])


def test_sources_text_marks_disabled(monkeypatch, capsys):
    assert run_cli(["sources"], monkeypatch) == 0
    out = capsys.readouterr().out
    assert "- CMX (rendered, semiconductors, weight=1) [disabled]" in out
    assert "- Hacker News (static, semiconductors, weight=3)" in out


def test_scrape_unknown_source(monkeypatch, capsys):
    assert run_cli(["scrape", "Nope"], monkeypatch) == 2
    assert "Unknown source: Nope" in capsys.readouterr().err


def test_scrape_prints_result_without_persisting(monkeypatch, capsys):
    item = ScrapedItem(title="Chip story", url="https://x.example/1", source="Demo", time="Recent")
    entry = SourceEntry(
        name="Demo",
        kind="feed",
        sector="semiconductors",
        fetch=lambda ctx: SourceResult.from_items("Demo", [item], 7),
    )
    monkeypatch.setattr(cli, "get_source", lambda name: entry)
    assert run_cli(["scrape", "Demo", "--json"], monkeypatch) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "success"
    assert payload["items"][0]["url"] == "https://x.example/1"


def test_scrape_error_exit_code(monkeypatch, capsys):
    entry = SourceEntry(
        name="Demo",
        kind="feed",
        sector="luxury",
        fetch=lambda ctx: SourceResult.failed("Demo", "HTTP 404", 3),
    )
    monkeypatch.setattr(cli, "get_source", lambda name: entry)
    assert run_cli(["scrape", "Demo"], monkeypatch) == 1
    assert "error: HTTP 404" in capsys.readouterr().out


def test_articles_lists_stored_rows(tmp_path, monkeypatch, capsys):
    store = SqliteArticleStore(tmp_path)
    store.upsert(
        [
            Article(url="https://x.example/1", title="Bag one", source="PurseBlog", sector="luxury"),
            Article(url="https://x.example/2", title="Chip one", source="SemiAnalysis", sector="semiconductors"),
        ]
    )
    store.close()

    assert run_cli(["--data-root", str(tmp_path), "articles", "--source", "PurseBlog", "--json"], monkeypatch) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [row["title"] for row in payload] == ["Bag one"]

    assert run_cli(["--data-root", str(tmp_path), "articles", "--sector", "semiconductors"], monkeypatch) == 0
    out = capsys.readouterr().out
    assert "[SemiAnalysis] Chip one" in out
    assert "Bag one" not in out


class FakeBatchRunner:
    instances: list["FakeBatchRunner"] = []

    def __init__(self, *args, **kwargs):
        self.args = args
        self.kwargs = kwargs
        FakeBatchRunner.instances.append(self)

    def run(self):
        return None


def test_run_now_disables_jitter_in_production(tmp_path, monkeypatch):
    FakeBatchRunner.instances = []
    monkeypatch.setattr(cli, "BatchRunner", FakeBatchRunner)
    monkeypatch.setenv("LUX_ENV", "production")

    assert run_cli(["--data-root", str(tmp_path), "run", "--now"], monkeypatch) == 0
    assert run_cli(["--data-root", str(tmp_path), "run"], monkeypatch) == 0

    configs = [runner.kwargs["config"] for runner in FakeBatchRunner.instances]
    assert [config.enable_jitter for config in configs] == [False, True]
    assert list((tmp_path / "logs").glob("run-*.log"))


def test_run_without_supabase_credentials_exits_non_zero(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(cli, "BatchRunner", FakeBatchRunner)
    monkeypatch.setenv("LUX_STORE", "supabase")
    assert run_cli(["--data-root", str(tmp_path), "run", "--now"], monkeypatch) == 1
    assert "fatal:" in capsys.readouterr().err


class FakeDaemon:
    created: list["FakeDaemon"] = []

    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        FakeDaemon.created.append(self)

    def run(self):
        return None


def test_daemon_passes_max_cycles(tmp_path, monkeypatch):
    FakeDaemon.created = []
    monkeypatch.setattr(cli, "ContinuousDaemon", FakeDaemon)
    assert run_cli(["--data-root", str(tmp_path), "daemon", "--max-cycles", "2"], monkeypatch) == 0
    [daemon] = FakeDaemon.created
    assert daemon.kwargs["config"].max_cycles == 2


def test_scrape_uses_configured_chromium(monkeypatch, capsys):
    built = []

    class RecordingRenderer:
        def __init__(self, *args):
            built.append(args)

    entry = SourceEntry(
        name="Demo",
        kind="rendered",
        sector="luxury",
        fetch=lambda ctx: SourceResult.from_items("Demo", [], 1),
    )
    monkeypatch.setattr(cli, "get_source", lambda name: entry)
    monkeypatch.setattr(cli, "IsolatedRenderer", RecordingRenderer)
    monkeypatch.setenv("PLAYWRIGHT_CHROMIUM_PATH", "/opt/chromium/chrome")
    assert run_cli(["scrape", "Demo"], monkeypatch) == 0
    [(executable_path, _blocked)] = built
    assert executable_path == "/opt/chromium/chrome"
