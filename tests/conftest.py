# File: tests/conftest.py
from pathlib import Path
from typing import Dict, Union

import pytest

from docs_crawler.crawler.parser import ArticleContent, ParsedPage
from docs_crawler.crawler.url_frontier import PageRecord, SourceType
from docs_crawler.utils.config import Config, CrawlerConfig, StorageConfig

ORIGIN = "https://developer.apple.com"


def doc_url(path: str) -> str:
    return f"{ORIGIN}{path}"


def page_html(title: str, links=(), article: bool = True) -> str:
    """Build a rendered page with navigation links and optionally an article."""
    anchors = "".join(f'<a href="{href}">{text}</a>' for href, text in links)
    body = f"<article><h1>{title}</h1><p>Body of {title}.</p></article>" if article else ""
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><nav>{anchors}</nav><main>{body}</main></body></html>"
    )


class FakeRenderer:
    """In-memory renderer: maps URLs to HTML or to an exception to raise."""

    def __init__(self, pages: Dict[str, Union[str, Exception]]):
        self.pages = pages
        self.rendered = []
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True

    async def render(self, url: str) -> str:
        self.rendered.append(url)
        result = self.pages[url]
        if isinstance(result, Exception):
            raise result
        return result


class ArticleTagExtractor:
    """Deterministic content extractor: the page's <article>, if any."""

    def extract(self, page: ParsedPage):
        article = page.soup.find("article")
        if article is None:
            return None
        heading = article.find("h1")
        return ArticleContent(
            title=heading.get_text(strip=True) if heading else None,
            body_html=str(article)
        )


@pytest.fixture()
def crawl_config(tmp_path: Path) -> Config:
    """A config with no pacing delays writing into a temporary directory."""
    return Config(
        crawler=CrawlerConfig(
            site_origin=ORIGIN,
            concurrency_limit=3,
            batch_delay=0,
            render_timeout=1,
            settle_delay=0,
        ),
        storage=StorageConfig(output_directory=str(tmp_path / "docs")),
    )


@pytest.fixture()
def seed_record() -> PageRecord:
    return PageRecord(
        url=doc_url("/documentation/swiftui/views"),
        title="Views",
        source_type=SourceType.SEED,
        path="/documentation/swiftui/views",
        index=0,
    )
