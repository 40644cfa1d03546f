# pullstats/scrapers/registry_scraper.py

"""Fetching and parsing of GitHub package listing and version pages."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl, unquote, urlencode, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.element import Tag
from curl_cffi import requests as curl_requests

from pullstats.config.settings import Settings
from pullstats.models.snapshot import SnapshotRecord
from pullstats.scrapers.patterns import extract_count, extract_version


class FetchError(RuntimeError):
    """A page request answered with a non-success status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"HTTP {status_code} for {url}")
        self.url = url
        self.status_code = status_code


@dataclass
class ListingPage:
    """Links discovered on one organization listing page."""

    next_page_urls: list[str] = field(
        default_factory=lambda: list[str]()
    )
    package_titles: list[str] = field(
        default_factory=lambda: list[str]()
    )
    detail_urls: list[str] = field(
        default_factory=lambda: list[str]()
    )


def package_from_url(url: str) -> str:
    """Derive the ``owner/name`` package identifier from a version page URL.

    The package path sits between ``/container/`` and ``/versions``;
    only its last two segments are kept. A single-segment path is
    prefixed with the URL's owner segment.
    """
    segments = [
        unquote(s) for s in urlsplit(url).path.split("/") if s
    ]
    package_path = segments
    if "container" in segments:
        package_path = segments[segments.index("container") + 1:]
    if package_path and package_path[-1] == "versions":
        package_path = package_path[:-1]
    if not package_path:
        return ""
    if len(package_path) == 1:
        owner = segments[0] if segments else ""
        return f"{owner}/{package_path[0]}" if owner else ""
    return "/".join(package_path[-2:])


class RegistryScraper:
    """Scraper for an organization's public GitHub container packages."""

    def __init__(
        self,
        organization: str,
        source_name: str = Settings.SOURCE_NAME,
    ) -> None:
        self.organization = organization
        self.source_name = source_name
        self.logger = logging.getLogger(
            f"pullstats.{source_name}"
        )
        self.settings = Settings()
        self.selectors: dict[str, str] = self._load_selectors()
        self._request_timeout: int = (
            self.settings.REQUEST_TIMEOUT
        )

    def _load_selectors(self) -> dict[str, str]:
        """Load CSS selectors for this source from selectors.json."""
        with open(self.settings.SELECTORS_PATH) as f:
            all_selectors: dict[str, Any] = json.load(f)
        result: dict[str, str] = all_selectors.get(
            self.source_name, {}
        )
        return result

    # ── URLs ─────────────────────────────────────────────

    def listing_url(self) -> str:
        """Return the listing root URL for the organization."""
        return self.settings.LISTING_URL.format(
            organization=self.organization
        )

    def page_url(self, page: int) -> str:
        """Return the listing root URL with ``page=<page>`` set."""
        parts = urlsplit(self.listing_url())
        params = [
            (k, v) for k, v in parse_qsl(parts.query)
            if k != "page"
        ]
        params.append(("page", str(page)))
        return urlunsplit(parts._replace(query=urlencode(params)))

    def detail_url(self, title: str) -> str:
        """Return the tagged-versions page URL for a listed package."""
        repository = title.split("/")[0]
        return self.settings.DETAIL_URL.format(
            organization=self.organization,
            repository=repository,
            package=title,
        )

    # ── Fetching ─────────────────────────────────────────

    def new_session(self) -> curl_requests.Session:
        """Open a browser-impersonating HTTP session."""
        return curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    def get_page(
        self,
        session: curl_requests.Session,
        url: str,
    ) -> BeautifulSoup:
        """Fetch *url* and parse it.

        Raises:
            FetchError: the response status is not 200. There is no
                retry; the caller aborts the whole crawl.
        """
        headers: dict[str, str] = {
            **self.settings.DEFAULT_HEADERS,
            "Referer": self.listing_url(),
        }
        resp = session.get(
            url,
            headers=headers,
            timeout=self._request_timeout,
        )
        if resp.status_code != 200:
            self.logger.error(
                "[%s] HTTP %d for %s",
                self.source_name,
                resp.status_code,
                url,
            )
            raise FetchError(url, resp.status_code)
        self.logger.debug(
            "[%s] Fetched %s (%d bytes)",
            self.source_name,
            url,
            len(resp.text),
        )
        return BeautifulSoup(resp.text, "lxml")

    # ── Parsing ──────────────────────────────────────────

    def _next_page_urls(self, soup: BeautifulSoup) -> list[str]:
        """Return the next listing page while the indicator is short of the total."""
        urls: list[str] = []
        total_attr = self.selectors["total_pages_attr"]
        for container in soup.select(self.selectors["pagination"]):
            for em in container.select(
                self.selectors["page_indicator"]
            ):
                total = em.get(total_attr)
                if total is None:
                    continue
                current = em.get_text(strip=True)
                if current == str(total).strip():
                    continue
                try:
                    next_page = int(current) + 1
                except ValueError:
                    self.logger.debug(
                        "[%s] Unreadable page indicator %r",
                        self.source_name,
                        current,
                    )
                    continue
                url = self.page_url(next_page)
                if url not in urls:
                    urls.append(url)
        return urls

    def parse_listing(self, soup: BeautifulSoup) -> ListingPage:
        """Extract pagination and package links from a listing page."""
        page = ListingPage(next_page_urls=self._next_page_urls(soup))
        primary = self.selectors["primary_link_class"]

        for row in soup.select(self.selectors["row"]):
            for anchor in row.find_all("a"):
                if not isinstance(anchor, Tag):
                    continue
                classes = anchor.get("class") or []
                if not any(primary in c for c in classes):
                    continue
                title = str(anchor.get("title") or "").strip()
                if not title:
                    self.logger.debug(
                        "[%s] Primary link without title skipped",
                        self.source_name,
                    )
                    continue
                page.package_titles.append(title)
                page.detail_urls.append(self.detail_url(title))

        return page

    def parse_detail(
        self,
        soup: BeautifulSoup,
        url: str,
        run_date: str,
    ) -> list[SnapshotRecord]:
        """Build one candidate record per version row of a detail page.

        Fields that cannot be extracted stay empty; the completeness
        filter discards such records later.
        """
        package = package_from_url(url)
        count_class = self.selectors["count_span_class"]
        rows = soup.select(self.selectors["row"])
        if not rows:
            self.logger.debug(
                "[%s] No version rows on %s", self.source_name, url
            )
            return [SnapshotRecord(date=run_date, package=package)]

        records: list[SnapshotRecord] = []
        for row in rows:
            record = SnapshotRecord(date=run_date, package=package)
            # Newest tag is listed last; the last match wins
            for anchor in row.find_all("a"):
                version = extract_version(anchor.get_text(strip=True))
                if version:
                    record.version = version
            for span in row.find_all("span"):
                if not isinstance(span, Tag):
                    continue
                if " ".join(span.get("class") or []) == count_class:
                    record.count = extract_count(
                        span.get_text(" ", strip=True)
                    )
            records.append(record)
        return records
