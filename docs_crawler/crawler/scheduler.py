"""
Crawler scheduler that drives the batch crawl: drain a bounded batch from
the frontier, render its pages concurrently, fold discovered links back
into the frontier, persist artifacts, pause, repeat.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional
from dataclasses import dataclass

from .url_frontier import URLFrontier, PageRecord, SourceType
from .renderer import PageRenderer
from .parser import ContentExtractor, LinkExtractor, MarkdownConverter
from .worker import CrawlOutcome, CrawlStatus, PageWorker, Renderer
from ..storage.artifacts import ArtifactStore, StorageError, build_artifact
from ..utils.config import Config


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float
    pages_processed: int = 0
    persisted: int = 0
    fetch_failed: int = 0
    extraction_failed: int = 0
    write_failed: int = 0
    links_discovered: int = 0
    links_admitted: int = 0
    batches: int = 0
    urls_in_queue: int = 0

    @property
    def failed(self) -> int:
        return self.fetch_failed + self.extraction_failed + self.write_failed

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def pages_per_minute(self) -> float:
        elapsed_minutes = self.elapsed_time / 60
        return self.pages_processed / elapsed_minutes if elapsed_minutes > 0 else 0


class CrawlerScheduler:
    """
    Coordinates the frontier, the page workers and artifact storage.

    The frontier is touched only from this single flow of control (seeding,
    draining and folding), never from the concurrently running workers,
    which report discovered links through their outcomes.
    """

    def __init__(self, config: Config, namespace: str,
                 renderer: Optional[Renderer] = None,
                 store: Optional[ArtifactStore] = None,
                 worker: Optional[PageWorker] = None):
        self.config = config
        self.namespace = namespace
        self.logger = logging.getLogger(__name__)

        crawler = config.crawler
        self.concurrency_limit = crawler.concurrency_limit
        self.batch_delay = crawler.batch_delay
        self.max_pages = crawler.max_pages

        # Components
        self.frontier = URLFrontier()
        self.renderer: Renderer = renderer or PageRenderer(
            user_agent=crawler.user_agent,
            render_timeout=crawler.render_timeout,
            settle_delay=crawler.settle_delay,
            headless=crawler.headless,
            browser_args=crawler.browser_args
        )
        self.store = store or ArtifactStore(config.storage.output_directory, namespace)
        self.worker = worker or PageWorker(
            self.renderer,
            link_extractor=LinkExtractor(crawler.site_origin, crawler.docs_marker),
            content_extractor=ContentExtractor(),
            converter=MarkdownConverter()
        )

        # Crawl state
        self.stats = CrawlStats(start_time=time.time())
        self.is_running = False
        self._semaphore = asyncio.Semaphore(self.concurrency_limit)

    async def initialize(self):
        """Launch the rendering engine and prepare the output directory."""
        start = getattr(self.renderer, 'start', None)
        if start is not None:
            await start()

        self.store.initialize()
        self.logger.info("Crawler scheduler initialized successfully")

    def add_seed_records(self, seeds: List[PageRecord]) -> int:
        """Admit the seed pages into the frontier."""
        admitted = self.frontier.admit_many(seeds)
        self.logger.info(f"Added {len(admitted)} seed URLs to frontier")
        return len(admitted)

    async def start_crawling(self, seeds: List[PageRecord]) -> CrawlStats:
        """
        Run the crawl to completion.

        Returns the final statistics once no pages are left pending (or the
        optional max_pages cap is reached).
        """
        if self.is_running:
            raise RuntimeError("Crawler is already running")

        self.is_running = True
        self.stats = CrawlStats(start_time=time.time())

        try:
            self.add_seed_records(seeds)
            self.logger.info(f"Starting crawl of {self.frontier.pending_count()} pages...")

            while True:
                limit = self._next_batch_limit()
                if limit == 0:
                    self.logger.info(f"Reached max pages limit: {self.max_pages}")
                    break

                batch = self.frontier.drain_batch(limit)
                if not batch:
                    break

                outcomes = await self._dispatch(batch)
                self._fold(outcomes)
                self.stats.batches += 1
                self._log_current_stats()

                if self.frontier.is_empty() or self._next_batch_limit() == 0:
                    continue

                await asyncio.sleep(self.batch_delay)

            self._log_final_stats()
            return self.stats

        finally:
            self.is_running = False

    def _next_batch_limit(self) -> int:
        if self.max_pages is None:
            return self.concurrency_limit
        remaining = self.max_pages - self.stats.pages_processed
        return max(0, min(self.concurrency_limit, remaining))

    async def _dispatch(self, batch: List[PageRecord]) -> List[CrawlOutcome]:
        """Run one worker per record concurrently and wait for all of them."""
        tasks = [self._process_record(record) for record in batch]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: List[CrawlOutcome] = []
        for record, result in zip(batch, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                self.logger.error(f"Exception processing {record.url}: {result}")
                outcomes.append(CrawlOutcome(record, CrawlStatus.FETCH_FAILED, error=str(result)))
            else:
                outcomes.append(result)

        return outcomes

    async def _process_record(self, record: PageRecord) -> CrawlOutcome:
        async with self._semaphore:
            return await self.worker.process(record, self.namespace)

    def _fold(self, outcomes: List[CrawlOutcome]):
        """Fold outcomes into the frontier and storage, in dispatch order."""
        for outcome in outcomes:
            record = outcome.record
            self.stats.pages_processed += 1

            self._queue_new_urls(outcome)

            if outcome.succeeded:
                self._persist(outcome)
            else:
                if outcome.status is CrawlStatus.FETCH_FAILED:
                    self.stats.fetch_failed += 1
                else:
                    self.stats.extraction_failed += 1
                self.logger.info(f"❌ [{record.index}] {record.title} - {outcome.error}")

        self.stats.urls_in_queue = self.frontier.pending_count()

    def _queue_new_urls(self, outcome: CrawlOutcome):
        """Admit every link discovered on a page; the frontier drops repeats."""
        self.stats.links_discovered += len(outcome.discovered_links)

        new_records = [
            PageRecord(url=url, title=title, source_type=SourceType.DISCOVERED)
            for url, title in outcome.discovered_links
        ]
        admitted = self.frontier.admit_many(new_records)
        self.stats.links_admitted += len(admitted)

        if admitted:
            self.logger.debug(f"Queued {len(admitted)} new URLs from {outcome.record.url}")

    def _persist(self, outcome: CrawlOutcome):
        artifact = build_artifact(outcome.record, outcome.content or '')
        try:
            self.store.write(artifact)
        except StorageError as e:
            self.stats.write_failed += 1
            self.logger.error(f"❌ [{outcome.record.index}] {outcome.record.title} - {e}")
            return

        self.stats.persisted += 1
        self.logger.info(f"✅ {artifact.filename}")

    def _log_current_stats(self):
        """Log the running tally after a batch."""
        self.logger.info(
            f"Batch {self.stats.batches}: "
            f"processed={self.stats.pages_processed}, "
            f"persisted={self.stats.persisted}, "
            f"failed={self.stats.failed}, "
            f"discovered={self.stats.links_discovered}, "
            f"queued={self.stats.urls_in_queue}"
        )

    def _log_final_stats(self):
        """Log final crawl statistics."""
        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(
            f"Completed: {self.stats.persisted} success, {self.stats.failed} failed "
            f"({self.stats.pages_processed} total)"
        )
        self.logger.info(
            f"Failures: fetch={self.stats.fetch_failed}, "
            f"extraction={self.stats.extraction_failed}, write={self.stats.write_failed}"
        )
        self.logger.info(f"Links discovered: {self.stats.links_discovered} "
                         f"({self.stats.links_admitted} new)")
        self.logger.info(f"Batches: {self.stats.batches}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")
        self.logger.info(f"Average rate: {self.stats.pages_per_minute:.1f} pages/min")
        self.logger.info(f"URLs remaining in queue: {self.frontier.pending_count()}")

    async def close(self):
        """Release the rendering engine."""
        close = getattr(self.renderer, 'close', None)
        if close is not None:
            await close()
        self.logger.info("Crawler scheduler closed")

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        return {
            'pages_processed': self.stats.pages_processed,
            'persisted': self.stats.persisted,
            'failed': self.stats.failed,
            'fetch_failed': self.stats.fetch_failed,
            'extraction_failed': self.stats.extraction_failed,
            'write_failed': self.stats.write_failed,
            'links_discovered': self.stats.links_discovered,
            'links_admitted': self.stats.links_admitted,
            'batches': self.stats.batches,
            'elapsed_time': self.stats.elapsed_time,
            'pages_per_minute': self.stats.pages_per_minute,
            'urls_in_queue': self.frontier.pending_count(),
            'is_running': self.is_running,
            'frontier': self.frontier.get_stats()
        }
