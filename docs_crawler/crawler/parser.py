"""
Page parser: DOM parsing, in-scope link extraction, main-content
extraction and markdown conversion.
"""

import re
import logging
from typing import List, Optional, Tuple
from dataclasses import dataclass

import trafilatura
from bs4 import BeautifulSoup
from markdownify import markdownify

from .scope import DEFAULT_DOCS_MARKER, DEFAULT_ORIGIN, in_scope, normalize_url, resolve_url
from .url_frontier import UNTITLED


class ExtractionError(Exception):
    """Raised when the primary content of a page cannot be isolated or converted."""
    pass


@dataclass
class ParsedPage:
    """A rendered page parsed into a document structure."""
    url: str
    html: str
    soup: BeautifulSoup


@dataclass
class ArticleContent:
    """Primary readable content of a page."""
    title: Optional[str]
    body_html: str


def parse_page(html: str, base_url: str) -> ParsedPage:
    """Parse rendered HTML into a document structure."""
    return ParsedPage(url=base_url, html=html, soup=BeautifulSoup(html, 'lxml'))


class LinkExtractor:
    """
    Produces the in-scope outbound links of a page, in document order.

    Duplicates are kept; deduplication belongs to the frontier.
    """

    _SKIP_PREFIXES = ('#', 'mailto:', 'javascript:', 'tel:', 'data:')

    def __init__(self, origin: str = DEFAULT_ORIGIN, docs_marker: str = DEFAULT_DOCS_MARKER):
        self.origin = origin
        self.docs_marker = docs_marker
        self.whitespace_pattern = re.compile(r'\s+')

    def extract(self, page: ParsedPage, namespace: str) -> List[Tuple[str, str]]:
        """Return ``(url, title)`` pairs for every in-scope anchor."""
        links: List[Tuple[str, str]] = []

        for anchor in page.soup.find_all('a', href=True):
            href = anchor.get('href')
            if not isinstance(href, str):
                continue
            href = href.strip()
            if not href or href.lower().startswith(self._SKIP_PREFIXES):
                continue

            # Document-relative hrefs resolve against the page they appear on
            url = resolve_url(href, page.url or self.origin)
            if not in_scope(url, namespace, self.origin, self.docs_marker):
                continue

            url = normalize_url(url)
            title = self.whitespace_pattern.sub(' ', anchor.get_text()).strip() or UNTITLED
            links.append((url, title))

        return links


class ContentExtractor:
    """Isolates the primary readable content of a page with trafilatura."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def extract(self, page: ParsedPage) -> Optional[ArticleContent]:
        """
        Extract the article of ``page``.

        Returns None when no main content can be isolated.
        """
        try:
            body_html = trafilatura.extract(
                page.html,
                url=page.url,
                output_format='html',
                include_links=True,
                include_images=True,
                include_tables=True,
                include_formatting=True,
                favor_recall=True,
            )
        except Exception as e:
            raise ExtractionError(f"Content extraction failed: {e}") from e

        if not body_html or not body_html.strip():
            self.logger.debug(f"No main content found in {page.url}")
            return None

        return ArticleContent(title=self._extract_title(page), body_html=body_html)

    def _extract_title(self, page: ParsedPage) -> Optional[str]:
        """Prefer the first heading, then the document title."""
        heading = page.soup.find('h1')
        if heading and heading.get_text(strip=True):
            return heading.get_text(' ', strip=True)

        title_tag = page.soup.find('title')
        if title_tag and title_tag.get_text(strip=True):
            return title_tag.get_text(' ', strip=True)

        return None


class MarkdownConverter:
    """Converts extracted HTML into markdown (ATX headings, fenced code)."""

    def convert(self, body_html: str) -> str:
        try:
            markdown = markdownify(
                body_html,
                heading_style='ATX',
                bullets='*',
                strip=['script', 'style'],
            )
        except Exception as e:
            raise ExtractionError(f"Markdown conversion failed: {e}") from e

        # Collapse the blank-line runs markdownify leaves between blocks
        return re.sub(r'\n{3,}', '\n\n', markdown).strip()

