# tests/test_settings.py

"""Tests for the Settings configuration class."""

import json
import unittest
from pathlib import Path

from pullstats.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants and selector file."""

    def test_request_timeout_is_positive_int(self) -> None:
        """REQUEST_TIMEOUT must be a positive integer."""
        self.assertIsInstance(Settings.REQUEST_TIMEOUT, int)
        self.assertGreater(Settings.REQUEST_TIMEOUT, 0)

    def test_max_concurrency_positive(self) -> None:
        """MAX_CONCURRENCY must be >= 1."""
        self.assertIsInstance(Settings.MAX_CONCURRENCY, int)
        self.assertGreaterEqual(Settings.MAX_CONCURRENCY, 1)

    def test_listing_url_templated(self) -> None:
        """The listing URL takes the organization placeholder."""
        self.assertIn("{organization}", Settings.LISTING_URL)
        self.assertIn(
            "/orgs/acme/",
            Settings.LISTING_URL.format(organization="acme"),
        )

    def test_detail_url_placeholders(self) -> None:
        """The detail URL takes organization, repository and package."""
        url = Settings.DETAIL_URL.format(
            organization="o", repository="r", package="r/p"
        )
        self.assertIn("/o/r/pkgs/container/r/p/versions", url)

    def test_history_header(self) -> None:
        """History files use the Date,Package,Version,Count header."""
        self.assertEqual(
            Settings.HISTORY_HEADER,
            ["Date", "Package", "Version", "Count"],
        )

    def test_path_constants_are_paths(self) -> None:
        """Path-typed settings are Path instances."""
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.SELECTORS_PATH, Path)
        self.assertIsInstance(Settings.OUTPUT_DIR, Path)
        self.assertIsInstance(Settings.RENDER_DIR, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)

    def test_selectors_path_exists(self) -> None:
        """The selectors.json file must exist on disk."""
        self.assertTrue(Settings.SELECTORS_PATH.exists())

    def test_selectors_cover_source(self) -> None:
        """The configured source has every selector the scraper reads."""
        with open(Settings.SELECTORS_PATH) as f:
            selectors = json.load(f)[Settings.SOURCE_NAME]
        for key in (
            "pagination",
            "page_indicator",
            "total_pages_attr",
            "row",
            "primary_link_class",
            "count_span_class",
        ):
            with self.subTest(key=key):
                self.assertTrue(selectors.get(key))

    def test_impersonate_browser_is_string(self) -> None:
        """IMPERSONATE_BROWSER must be a non-empty string."""
        self.assertIsInstance(Settings.IMPERSONATE_BROWSER, str)
        self.assertTrue(len(Settings.IMPERSONATE_BROWSER) > 0)

    def test_default_headers_has_accept_language(self) -> None:
        """DEFAULT_HEADERS must include Accept-Language."""
        self.assertIn("Accept-Language", Settings.DEFAULT_HEADERS)


if __name__ == "__main__":
    unittest.main()
