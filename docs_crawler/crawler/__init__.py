"""
Documentation crawler core components.
"""

from .scope import in_scope, normalize_url
from .url_frontier import URLFrontier, PageRecord, SourceType
from .parser import ContentExtractor, LinkExtractor, MarkdownConverter, ParsedPage, parse_page
from .fetcher import IndexFetcher, IndexFetchError, parse_seed_records
from .renderer import PageRenderer, RenderError, RenderTimeout
from .worker import PageWorker, CrawlOutcome, CrawlStatus
from .scheduler import CrawlerScheduler, CrawlStats

__all__ = [
    'in_scope', 'normalize_url',
    'URLFrontier', 'PageRecord', 'SourceType',
    'ContentExtractor', 'LinkExtractor', 'MarkdownConverter', 'ParsedPage', 'parse_page',
    'IndexFetcher', 'IndexFetchError', 'parse_seed_records',
    'PageRenderer', 'RenderError', 'RenderTimeout',
    'PageWorker', 'CrawlOutcome', 'CrawlStatus',
    'CrawlerScheduler', 'CrawlStats'
]
