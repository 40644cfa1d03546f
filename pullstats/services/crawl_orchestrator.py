# pullstats/services/crawl_orchestrator.py

"""Orchestrates the bounded-concurrency crawl of an organization's packages."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from curl_cffi import requests as curl_requests

from pullstats.config.settings import Settings
from pullstats.filters.completeness_filter import CompletenessFilter
from pullstats.models.snapshot import SnapshotRecord
from pullstats.scrapers.registry_scraper import RegistryScraper

logger = logging.getLogger("pullstats.crawler")


class CrawlAbortedError(RuntimeError):
    """The crawl was aborted by a failed session or page fetch."""


class PageKind(Enum):
    """Kind of page a fetch task targets."""

    LISTING = "listing"
    DETAIL = "detail"


@dataclass(frozen=True)
class FetchTask:
    """One page to fetch."""

    kind: PageKind
    url: str


@dataclass
class CrawlResult:
    """Container for a completed crawl of one organization."""

    organization: str
    run_date: str
    records: list[SnapshotRecord] = field(
        default_factory=lambda: list[SnapshotRecord]()
    )
    dropped: int = 0
    packages_found: int = 0
    pages_fetched: int = 0


@dataclass
class _CrawlState:
    """Per-crawl scheduler state: work queue, collector and abort signal.

    The queue's unfinished-task counter tracks in-flight work, so
    ``queue.join()`` returns once every discovered page is processed.
    """

    run_date: str
    queue: asyncio.Queue[FetchTask] = field(
        default_factory=lambda: asyncio.Queue[FetchTask]()
    )
    visited: set[str] = field(default_factory=lambda: set[str]())
    candidates: list[SnapshotRecord] = field(
        default_factory=lambda: list[SnapshotRecord]()
    )
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    abort: asyncio.Event = field(default_factory=asyncio.Event)
    executor: ThreadPoolExecutor | None = None
    failure: BaseException | None = None
    packages_found: int = 0
    listing_fetches: int = 0
    detail_fetches: int = 0


class CrawlOrchestrator:
    """Crawls listing and detail pages through one bounded worker pool."""

    def __init__(
        self,
        max_concurrency: int | None = None,
    ) -> None:
        self.settings = Settings()
        self.max_concurrency = max(
            1, max_concurrency or self.settings.MAX_CONCURRENCY
        )

    # ── Private helpers ──────────────────────────────────

    def _enqueue(self, state: _CrawlState, task: FetchTask) -> None:
        """Queue *task* unless the crawl is aborting or the URL was seen."""
        if state.abort.is_set() or task.url in state.visited:
            return
        state.visited.add(task.url)
        state.queue.put_nowait(task)

    def _fail(
        self, state: _CrawlState, task: FetchTask, exc: BaseException,
    ) -> None:
        """Raise the single-shot abort signal, keeping the first failure."""
        if state.failure is None:
            state.failure = exc
            logger.error(
                "Fetch of %s page %s failed, aborting crawl: %s",
                task.kind.value,
                task.url,
                exc,
                exc_info=exc,
            )
        state.abort.set()

    async def _process(
        self,
        scraper: RegistryScraper,
        session: curl_requests.Session,
        state: _CrawlState,
        task: FetchTask,
    ) -> None:
        """Fetch one page and act on its content."""
        loop = asyncio.get_running_loop()
        soup = await loop.run_in_executor(
            state.executor, scraper.get_page, session, task.url
        )

        if task.kind is PageKind.LISTING:
            state.listing_fetches += 1
            listing = scraper.parse_listing(soup)
            for url in listing.next_page_urls:
                self._enqueue(state, FetchTask(PageKind.LISTING, url))
            for title, url in zip(
                listing.package_titles, listing.detail_urls
            ):
                logger.info("Scrape pulls count for package '%s'", title)
                state.packages_found += 1
                self._enqueue(state, FetchTask(PageKind.DETAIL, url))
            return

        state.detail_fetches += 1
        records = scraper.parse_detail(soup, task.url, state.run_date)
        async with state.lock:
            state.candidates.extend(records)

    async def _worker(
        self,
        scraper: RegistryScraper,
        session: curl_requests.Session,
        state: _CrawlState,
    ) -> None:
        """Drain the shared queue until cancelled."""
        while True:
            task = await state.queue.get()
            try:
                # After an abort, queued tasks are drained unfetched
                if not state.abort.is_set():
                    await self._process(scraper, session, state, task)
            except Exception as exc:
                self._fail(state, task, exc)
            finally:
                state.queue.task_done()

    def _open_sessions(
        self, scraper: RegistryScraper, organization: str,
    ) -> list[curl_requests.Session]:
        """Open one session per worker, closing them all on failure."""
        sessions: list[curl_requests.Session] = []
        try:
            for _ in range(self.max_concurrency):
                sessions.append(scraper.new_session())
        except Exception as exc:
            for session in sessions:
                session.close()
            logger.error(
                "Could not open HTTP session for '%s': %s",
                organization,
                exc,
                exc_info=exc,
            )
            raise CrawlAbortedError(
                f"Crawl of '{organization}' aborted: {exc}"
            ) from exc
        return sessions

    # ── Public API ───────────────────────────────────────

    async def crawl(
        self,
        organization: str,
        run_date: str | None = None,
    ) -> CrawlResult:
        """Crawl every public package of *organization*.

        Pagination and detail pages are discovered while other pages
        are still in flight; all of them share the same worker pool.

        Raises:
            CrawlAbortedError: a session could not be opened or any
                page fetch failed. No partial result is returned.
        """
        scraper = RegistryScraper(organization)
        state = _CrawlState(
            run_date=run_date
            or date.today().strftime(self.settings.DATE_FORMAT)
        )
        root = scraper.listing_url()
        logger.info(
            "Start scraping of '%s' with %d workers",
            root,
            self.max_concurrency,
        )

        sessions = self._open_sessions(scraper, organization)
        executor = ThreadPoolExecutor(
            max_workers=self.max_concurrency,
            thread_name_prefix="pullstats-fetch",
        )
        state.executor = executor

        self._enqueue(state, FetchTask(PageKind.LISTING, root))
        workers = [
            asyncio.create_task(self._worker(scraper, session, state))
            for session in sessions
        ]
        try:
            await state.queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            executor.shutdown(wait=False, cancel_futures=True)
            for session in sessions:
                session.close()

        if state.failure is not None:
            raise CrawlAbortedError(
                f"Crawl of '{organization}' aborted: {state.failure}"
            ) from state.failure

        records, dropped = CompletenessFilter.filter(state.candidates)
        logger.info(
            "%d package(s) found, %d listing and %d detail pages "
            "fetched, %d complete records",
            state.packages_found,
            state.listing_fetches,
            state.detail_fetches,
            len(records),
        )
        return CrawlResult(
            organization=organization,
            run_date=state.run_date,
            records=records,
            dropped=dropped,
            packages_found=state.packages_found,
            pages_fetched=state.listing_fetches + state.detail_fetches,
        )
