# tests/test_runner.py

"""End-to-end tests for the harvest runner and CLI entry point."""

import sys
import tempfile
import unittest
from datetime import date
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import main
from pullstats.cli.runner import build_report, run_harvest, run_report
from pullstats.config.settings import Settings
from pullstats.scrapers.registry_scraper import RegistryScraper
from pullstats.storage.history_store import HistoryStore

SESSION_PATH = "pullstats.scrapers.registry_scraper.curl_requests.Session"

COUNT_CLASS = (
    "d-flex flex-items-center gap-1 color-fg-muted overflow-hidden f6 mr-3"
)

_SCRAPER = RegistryScraper("acme")


def _pages(tool_count: str | None = "567") -> dict[str, str]:
    """Two-package organization; tool_count=None hides the count span."""
    def detail(version: str, count: str | None) -> str:
        span = (
            f'<span class="{COUNT_CLASS}">{count}</span>'
            if count is not None
            else ""
        )
        return (
            '<div class="Box-row">'
            f'<a href="#">{version}</a>{span}</div>'
        )

    return {
        _SCRAPER.listing_url(): (
            '<div class="Box-row"><a class="Link--primary" '
            'title="repo-a/app" href="#">app</a></div>'
            '<div class="Box-row"><a class="Link--primary" '
            'title="repo-b/tool" href="#">tool</a></div>'
        ),
        _SCRAPER.detail_url("repo-a/app"): detail("v1.0.0", "1,234"),
        _SCRAPER.detail_url("repo-b/tool"): detail("v2.1.0", tool_count),
    }


def _serve(
    mock_session_cls: MagicMock,
    pages: dict[str, str],
    statuses: dict[str, int] | None = None,
) -> None:
    """Answer session GETs from *pages*."""
    codes = statuses or {}

    def fake_get(url: str, **_kwargs: Any) -> MagicMock:
        resp = MagicMock()
        resp.status_code = codes.get(url, 200 if url in pages else 404)
        resp.text = pages.get(url, "")
        return resp

    mock_session_cls.return_value.get.side_effect = fake_get


@patch(SESSION_PATH)
class TestRunHarvest(unittest.IsolatedAsyncioTestCase):
    """Crawl, persist and render in one pass."""

    def setUp(self) -> None:
        """Use temp output and render roots."""
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.output_dir = Path(self._tmp.name) / "outputs"
        self.render_dir = Path(self._tmp.name) / "renders"

    async def test_two_packages_two_logs(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """Each package gets a log with header plus one line."""
        _serve(mock_session_cls, _pages())
        today = date.today().isoformat()

        code = await run_harvest(
            "acme", self.output_dir, self.render_dir, render=False,
        )

        self.assertEqual(code, 0)
        org_dir = self.output_dir / "acme"
        self.assertEqual(
            (org_dir / "repo-a_app.csv").read_text().splitlines(),
            [
                "Date,Package,Version,Count",
                f"{today},repo-a/app,v1.0.0,1234",
            ],
        )
        self.assertEqual(
            (org_dir / "repo-b_tool.csv").read_text().splitlines(),
            [
                "Date,Package,Version,Count",
                f"{today},repo-b/tool,v2.1.0,567",
            ],
        )
        self.assertFalse(self.render_dir.exists())

    async def test_incomplete_record_not_persisted(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """A package whose count is missing gets no log line."""
        _serve(mock_session_cls, _pages(tool_count=None))

        code = await run_harvest(
            "acme", self.output_dir, self.render_dir, render=False,
        )

        self.assertEqual(code, 0)
        logs = HistoryStore(self.output_dir / "acme").list_logs()
        self.assertEqual([p.name for p in logs], ["repo-a_app.csv"])

    async def test_fetch_failure_writes_nothing(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """An aborted crawl exits 1 without touching history."""
        pages = _pages()
        _serve(
            mock_session_cls,
            pages,
            statuses={_SCRAPER.detail_url("repo-b/tool"): 502},
        )

        code = await run_harvest(
            "acme", self.output_dir, self.render_dir,
        )

        self.assertEqual(code, 1)
        self.assertFalse((self.output_dir / "acme").exists())

    async def test_render_writes_charts_and_index(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """With rendering on, charts and index.html are produced."""
        _serve(mock_session_cls, _pages())

        code = await run_harvest("acme", self.output_dir, self.render_dir)

        self.assertEqual(code, 0)
        self.assertTrue((self.render_dir / "acme" / "repo-a_app.html").exists())
        self.assertTrue((self.render_dir / "acme" / "repo-b_tool.html").exists())
        self.assertTrue((self.render_dir / "index.html").exists())

    async def test_history_write_failure_exits_1(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """A persistence error is fatal."""
        _serve(mock_session_cls, _pages())

        with patch.object(
            HistoryStore, "append", side_effect=OSError("disk full")
        ):
            code = await run_harvest(
                "acme", self.output_dir, self.render_dir,
            )

        self.assertEqual(code, 1)


class TestReport(unittest.TestCase):
    """Report pass over existing history."""

    def test_build_report_per_log(self) -> None:
        """One series per package log, named from its entries."""
        from pullstats.models.snapshot import SnapshotRecord

        with tempfile.TemporaryDirectory() as tmp:
            store = HistoryStore(Path(tmp))
            store.append("repo_x/app", [
                SnapshotRecord("2026-10-19", "repo_x/app", "v1.0.0", "100"),
                SnapshotRecord("2026-10-19", "repo_x/app", "v1.1.0", "50"),
            ])
            report = build_report(store)

        self.assertEqual(len(report), 1)
        self.assertEqual(report[0].package, "repo_x/app")
        self.assertEqual(report[0].totals, [150])

    def test_report_without_history(self) -> None:
        """No history means exit code 1."""
        with tempfile.TemporaryDirectory() as tmp:
            code = run_report(
                "acme", Path(tmp) / "outputs", Path(tmp) / "renders",
            )
        self.assertEqual(code, 1)


class TestMain(unittest.TestCase):
    """Argument handling of the entry point."""

    def test_missing_profile_exits_1(self) -> None:
        """Without -p the usage is shown and the exit code is 1."""
        with patch.object(sys, "argv", ["pullstats"]):
            with self.assertRaises(SystemExit) as ctx:
                main.main()
        self.assertEqual(ctx.exception.code, 1)

    @patch("pullstats.cli.runner.run_report", return_value=0)
    @patch("main.setup_logging", return_value=Path("run.log"))
    def test_report_only_skips_crawl(
        self, _mock_logging: MagicMock, mock_report: MagicMock,
    ) -> None:
        """--report-only routes to the report pass."""
        argv = ["pullstats", "-p", "acme", "-o", "out", "--report-only"]
        with patch.object(sys, "argv", argv):
            with self.assertRaises(SystemExit) as ctx:
                main.main()
        self.assertEqual(ctx.exception.code, 0)
        mock_report.assert_called_once_with(
            "acme", Path("out"), Settings.RENDER_DIR, include_totals=True,
        )


if __name__ == "__main__":
    unittest.main()
