# File: tests/test_scheduler.py
import asyncio
from pathlib import Path

import pytest

from docs_crawler.crawler.parser import LinkExtractor
from docs_crawler.crawler.renderer import RenderTimeout
from docs_crawler.crawler.scheduler import CrawlerScheduler
from docs_crawler.crawler.url_frontier import PageRecord, SourceType
from docs_crawler.crawler.worker import PageWorker
from docs_crawler.storage.artifacts import StorageError

from conftest import ORIGIN, ArticleTagExtractor, FakeRenderer, doc_url, page_html

URL1 = doc_url("/documentation/foo/one")
URL2 = doc_url("/documentation/foo/two")
URL3 = doc_url("/documentation/foo/three")


def seed(url: str, title: str, index: int) -> PageRecord:
    return PageRecord(url=url, title=title, source_type=SourceType.SEED, index=index)


def make_scheduler(config, pages, store=None, renderer=None):
    renderer = renderer or FakeRenderer(pages)
    worker = PageWorker(renderer,
                        link_extractor=LinkExtractor(ORIGIN),
                        content_extractor=ArticleTagExtractor())
    return CrawlerScheduler(config, "Foo", renderer=renderer, store=store, worker=worker)


def artifacts(config):
    directory = config.storage.output_directory
    return sorted(p.name for p in (Path(directory) / "Foo").glob("*.md"))


@pytest.mark.asyncio()
async def test_discovered_in_scope_page_is_crawled(crawl_config):
    pages = {
        URL1: page_html("One", links=[
            ("/documentation/foo/two", "Two"),
            ("/documentation/bar/elsewhere", "Elsewhere"),
        ]),
        URL2: page_html("Two"),
    }
    scheduler = make_scheduler(crawl_config, pages)
    await scheduler.initialize()

    stats = await scheduler.start_crawling([seed(URL1, "One", 0)])

    assert artifacts(crawl_config) == ["000_One.md", "001_Two.md"]
    assert scheduler.frontier.pending_count() == 0
    assert stats.links_discovered == 1
    assert stats.persisted == 2
    assert stats.failed == 0


@pytest.mark.asyncio()
async def test_duplicate_seed_is_admitted_once(crawl_config):
    scheduler = make_scheduler(crawl_config, {URL1: page_html("One")})
    await scheduler.initialize()

    stats = await scheduler.start_crawling([seed(URL1, "One", 0), seed(URL1, "One", 1)])

    assert scheduler.renderer.rendered == [URL1]
    assert stats.pages_processed == 1
    assert artifacts(crawl_config) == ["000_One.md"]


@pytest.mark.asyncio()
async def test_render_timeout_is_counted_and_crawl_continues(crawl_config):
    crawl_config.crawler.concurrency_limit = 1
    pages = {
        URL1: RenderTimeout("Timeout 1000ms exceeded"),
        URL2: page_html("Two"),
    }
    scheduler = make_scheduler(crawl_config, pages)
    await scheduler.initialize()

    stats = await scheduler.start_crawling([seed(URL1, "One", 0), seed(URL2, "Two", 1)])

    assert stats.fetch_failed == 1
    assert stats.persisted == 1
    assert stats.batches == 2
    assert stats.links_discovered == 0
    assert artifacts(crawl_config) == ["001_Two.md"]


@pytest.mark.asyncio()
async def test_extraction_failure_still_admits_links(crawl_config):
    pages = {
        URL1: page_html("One", article=False, links=[
            ("/documentation/foo/two", "Two"),
            ("/documentation/foo/three", "Three"),
        ]),
        URL2: page_html("Two"),
        URL3: page_html("Three"),
    }
    scheduler = make_scheduler(crawl_config, pages)
    await scheduler.initialize()

    stats = await scheduler.start_crawling([seed(URL1, "One", 0)])

    assert stats.extraction_failed == 1
    assert stats.links_admitted == 2
    assert artifacts(crawl_config) == ["001_Two.md", "002_Three.md"]


@pytest.mark.asyncio()
async def test_cyclic_links_terminate(crawl_config):
    pages = {
        URL1: page_html("One", links=[("/documentation/foo/two", "Two")]),
        URL2: page_html("Two", links=[
            ("/documentation/foo/one", "One"),
            ("/documentation/foo/two#overview", "Two again"),
        ]),
    }
    scheduler = make_scheduler(crawl_config, pages)
    await scheduler.initialize()

    stats = await scheduler.start_crawling([seed(URL1, "One", 0)])

    assert sorted(scheduler.renderer.rendered) == sorted([URL1, URL2])
    assert stats.pages_processed == 2
    assert stats.links_discovered == 3
    assert stats.links_admitted == 1


@pytest.mark.asyncio()
async def test_max_pages_stops_the_crawl(crawl_config):
    crawl_config.crawler.max_pages = 2
    pages = {
        URL1: page_html("One", links=[
            ("/documentation/foo/two", "Two"),
            ("/documentation/foo/three", "Three"),
        ]),
        URL2: page_html("Two"),
        URL3: page_html("Three"),
    }
    crawl_config.crawler.concurrency_limit = 1
    scheduler = make_scheduler(crawl_config, pages)
    await scheduler.initialize()

    stats = await scheduler.start_crawling([seed(URL1, "One", 0)])

    assert stats.pages_processed == 2
    assert scheduler.renderer.rendered == [URL1, URL2]
    assert scheduler.frontier.pending_count() == 1


@pytest.mark.asyncio()
async def test_write_failure_is_counted(crawl_config):
    class FailingStore:
        def initialize(self):
            pass

        def write(self, artifact):
            raise StorageError("disk full")

    scheduler = make_scheduler(crawl_config, {URL1: page_html("One")}, store=FailingStore())
    await scheduler.initialize()

    stats = await scheduler.start_crawling([seed(URL1, "One", 0)])

    assert stats.write_failed == 1
    assert stats.persisted == 0


@pytest.mark.asyncio()
async def test_concurrency_never_exceeds_limit(crawl_config):
    crawl_config.crawler.concurrency_limit = 2

    class SlowRenderer(FakeRenderer):
        def __init__(self, pages):
            super().__init__(pages)
            self.active = 0
            self.peak = 0

        async def render(self, url):
            self.active += 1
            self.peak = max(self.peak, self.active)
            await asyncio.sleep(0.01)
            self.active -= 1
            return await super().render(url)

    urls = [doc_url(f"/documentation/foo/page{i}") for i in range(5)]
    renderer = SlowRenderer({url: page_html(f"Page {i}") for i, url in enumerate(urls)})
    scheduler = make_scheduler(crawl_config, None, renderer=renderer)
    await scheduler.initialize()

    stats = await scheduler.start_crawling([seed(url, f"Page {i}", i) for i, url in enumerate(urls)])

    assert renderer.peak == 2
    assert stats.batches == 3
    assert stats.persisted == 5


@pytest.mark.asyncio()
async def test_renderer_lifecycle(crawl_config):
    scheduler = make_scheduler(crawl_config, {})
    await scheduler.initialize()
    assert scheduler.renderer.started

    stats = await scheduler.start_crawling([])
    await scheduler.close()

    assert stats.pages_processed == 0
    assert scheduler.renderer.closed
    assert scheduler.get_stats()['is_running'] is False
    assert scheduler.get_stats()['frontier']['total_visited'] == 0
