"""Unit tests for the searchctx CLI."""
from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path

import pytest

from searchctx.cli.main import run
from searchctx.config import Config
from searchctx.models import Location, MapRegion, SearchResults
from searchctx.services import SearchContextService
from searchctx.storage import open_store

DOWNTOWN = Location(latitude=37.7749, longitude=-122.4194)


@pytest.fixture(autouse=True)
def _quiet_cli_logging():
    """Keep CLI runs from logging to ~/.searchctx and restore root handlers afterwards."""
    data_dir = Path(os.environ["SEARCHCTX_DATA_DIR"])
    (data_dir / "config" / "settings.toml").write_text(
        "[logging]\nfile_enabled = false\nuse_rich_console = false\nlevel = \"WARNING\"\n",
        encoding="utf-8",
    )
    root = logging.getLogger()
    saved = root.handlers[:]
    yield
    root.handlers[:] = saved


def _seed(*queries: str) -> None:
    async def _populate():
        service = SearchContextService(open_store(Config.load()))
        for query in queries:
            await service.add_search_entry(
                query,
                DOWNTOWN,
                MapRegion(DOWNTOWN.latitude, DOWNTOWN.longitude, 0.01, 0.01),
                SearchResults.from_businesses([{"id": "biz_1"}]),
            )
        await service.save_context_snapshot(service.create_context_snapshot(DOWNTOWN))
        service.cleanup()

    asyncio.run(_populate())


class TestHelpAndVersion:
    def test_no_subcommand_prints_help(self, capsys):
        assert run([]) == 0
        assert "SUBCOMMAND" in capsys.readouterr().out

    def test_version(self, capsys):
        from searchctx import __version__

        assert run(["--version"]) == 0
        assert capsys.readouterr().out.strip() == __version__

    def test_unknown_subcommand_exits_nonzero(self):
        with pytest.raises(SystemExit) as exc_info:
            run(["explode"])
        assert exc_info.value.code != 0

    def test_missing_config_file(self, tmp_path, capsys):
        assert run(["--config", str(tmp_path / "nope.toml"), "stats"]) == 1


class TestCommands:
    """Commands run against the DuckDB store in the temp data dir."""

    def test_stats(self, capsys):
        _seed("coffee", "tea")
        assert run(["stats"]) == 0
        out = capsys.readouterr().out
        assert "History entries" in out
        assert "2" in out

    def test_history_filters(self, capsys):
        _seed("coffee", "pizza")
        assert run(["history", "--query", "pizza"]) == 0
        out = capsys.readouterr().out
        assert "pizza" in out
        assert "coffee" not in out

    def test_history_empty(self, capsys):
        assert run(["history"]) == 0
        assert "No search history found" in capsys.readouterr().out

    def test_recommend(self, capsys):
        _seed("coffee", "coffee", "coffee")
        assert run(["recommend", "--lat", "37.7749", "--lon", "-122.4194"]) == 0
        assert "coffee" in capsys.readouterr().out

    def test_snapshots(self, capsys):
        _seed("coffee")
        assert run(["snapshots"]) == 0
        assert "Context Snapshots (1)" in capsys.readouterr().out

    def test_clear_force(self, capsys):
        _seed("coffee", "tea")
        assert run(["clear", "--force"]) == 0
        assert "Removed 2 entries" in capsys.readouterr().out

        assert run(["history"]) == 0
        assert "No search history found" in capsys.readouterr().out

    def test_clear_aborted(self, capsys, monkeypatch):
        _seed("coffee")
        monkeypatch.setattr(sys.modules["searchctx.cli.main"].Confirm, "ask", lambda *a, **k: False)

        assert run(["clear"]) == 0
        assert "Aborted" in capsys.readouterr().out

        assert run(["history"]) == 0
        assert "coffee" in capsys.readouterr().out
