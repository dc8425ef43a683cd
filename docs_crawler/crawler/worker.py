"""
Page worker: renders one page, harvests its links and extracts its content.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Tuple

from .parser import (ContentExtractor, ExtractionError, LinkExtractor,
                     MarkdownConverter, parse_page)
from .renderer import RenderError, RenderTimeout
from .url_frontier import PageRecord
from ..utils.logger import get_crawler_logger


class Renderer(Protocol):
    async def render(self, url: str) -> str: ...


class CrawlStatus(Enum):
    """Outcome of processing one page."""
    PERSISTED = "persisted"
    EXTRACTION_FAILED = "extraction_failed"
    FETCH_FAILED = "fetch_failed"


@dataclass
class CrawlOutcome:
    """Result of processing one page, consumed once by the scheduler."""
    record: PageRecord
    status: CrawlStatus
    error: Optional[str] = None
    discovered_links: List[Tuple[str, str]] = field(default_factory=list)
    content: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is CrawlStatus.PERSISTED


class PageWorker:
    """
    Processes a single page record.

    Never raises: every rendering, extraction or conversion error becomes
    a failed CrawlOutcome. There are no retries.
    """

    def __init__(self, renderer: Renderer,
                 link_extractor: Optional[LinkExtractor] = None,
                 content_extractor: Optional[ContentExtractor] = None,
                 converter: Optional[MarkdownConverter] = None):
        self.renderer = renderer
        self.link_extractor = link_extractor or LinkExtractor()
        self.content_extractor = content_extractor or ContentExtractor()
        self.converter = converter or MarkdownConverter()

    async def process(self, record: PageRecord, namespace: str) -> CrawlOutcome:
        log = get_crawler_logger(__name__, url=record.url, index=record.index, namespace=namespace)

        try:
            html = await self.renderer.render(record.url)
        except RenderTimeout as e:
            log.warning(f"Render timed out [{record.index}] {record.title}")
            return CrawlOutcome(record, CrawlStatus.FETCH_FAILED, error=str(e))
        except RenderError as e:
            log.warning(f"Render failed [{record.index}] {record.title}: {e}")
            return CrawlOutcome(record, CrawlStatus.FETCH_FAILED, error=str(e))
        except Exception as e:
            log.error(f"Unexpected render error [{record.index}] {record.title}: {e}")
            return CrawlOutcome(record, CrawlStatus.FETCH_FAILED, error=f"Unexpected error: {e}")

        links: List[Tuple[str, str]] = []
        try:
            page = parse_page(html, record.url)
            # Links are harvested before extraction so navigation chrome
            # still contributes when the article cannot be isolated.
            links = self.link_extractor.extract(page, namespace)

            article = self.content_extractor.extract(page)
            if article is None:
                log.warning(f"⚠️  Cannot extract content: {record.title}")
                return CrawlOutcome(
                    record, CrawlStatus.EXTRACTION_FAILED,
                    error="Cannot extract content", discovered_links=links
                )

            markdown = self.converter.convert(article.body_html)

        except ExtractionError as e:
            log.warning(f"Extraction failed [{record.index}] {record.title}: {e}")
            return CrawlOutcome(record, CrawlStatus.EXTRACTION_FAILED, error=str(e),
                                discovered_links=links)
        except Exception as e:
            log.error(f"Unexpected extraction error [{record.index}] {record.title}: {e}")
            return CrawlOutcome(record, CrawlStatus.EXTRACTION_FAILED,
                                error=f"Unexpected error: {e}", discovered_links=links)

        title = article.title or record.title
        log.debug(f"Extracted {len(markdown)} chars and {len(links)} links from {record.url}")

        return CrawlOutcome(
            record,
            CrawlStatus.PERSISTED,
            discovered_links=links,
            content=f"# {title}\n\n{markdown}"
        )

