"""
Seed retrieval from the documentation index endpoint.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from aiohttp import ClientSession, ClientTimeout, ClientError

from .scope import DEFAULT_ORIGIN, normalize_url, resolve_url
from .url_frontier import UNTITLED, PageRecord, SourceType
from ..utils.config import ConfigurationError


class IndexFetchError(Exception):
    """Raised when the seed index cannot be retrieved or decoded."""
    pass


class IndexFetcher:
    """Fetches the JSON index that lists the seed pages of a namespace."""

    def __init__(self, index_url_template: str, user_agent: str,
                 request_timeout: float = 30.0):
        self.index_url_template = index_url_template
        self.user_agent = user_agent
        self.request_timeout = request_timeout

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the HTTP session."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=ClientTimeout(total=self.request_timeout),
                headers={'User-Agent': self.user_agent}
            )

    async def close(self):
        """Close the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    def index_url(self, namespace: str) -> str:
        return self.index_url_template.format(namespace=namespace)

    async def fetch_index(self, namespace: str) -> Dict[str, Any]:
        """
        Download and decode the index document for ``namespace``.

        Raises:
            IndexFetchError: network failure, bad status or non-JSON body
        """
        if self.session is None:
            raise IndexFetchError("IndexFetcher session not started")

        url = self.index_url(namespace)
        self.logger.info(f"Fetching seed index: {url}")

        try:
            async with self.session.get(url) as response:
                text = await response.text()
                if response.status != 200:
                    raise IndexFetchError(f"Index request returned HTTP {response.status}: {url}")

        except asyncio.TimeoutError as e:
            raise IndexFetchError(f"Index request timed out: {url}") from e

        except ClientError as e:
            raise IndexFetchError(f"Index request failed: {e}") from e

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise IndexFetchError("Response is not valid JSON format") from e

        if not isinstance(payload, dict):
            raise ConfigurationError(
                f"Index response must be a JSON object, got {type(payload).__name__}"
            )
        return payload

    async def fetch_seeds(self, namespace: str, origin: str = DEFAULT_ORIGIN) -> List[PageRecord]:
        """Fetch the index and turn its children into seed records."""
        payload = await self.fetch_index(namespace)
        return parse_seed_records(payload, origin)


def index_children(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Return ``interfaceLanguages.swift[0].children`` of an index document.

    Raises:
        ConfigurationError: the path is missing; the message lists the
            top-level keys that are available
    """
    try:
        children = payload['interfaceLanguages']['swift'][0]['children']
    except (KeyError, IndexError, TypeError) as e:
        available = ', '.join(sorted(payload)) if isinstance(payload, dict) else '-'
        raise ConfigurationError(
            "Cannot find specified path: interfaceLanguages.swift[0].children "
            f"(available top-level properties: {available})"
        ) from e

    if not isinstance(children, list):
        raise ConfigurationError("interfaceLanguages.swift[0].children is not a list")
    return children


def parse_seed_records(payload: Dict[str, Any], origin: str = DEFAULT_ORIGIN) -> List[PageRecord]:
    """
    Build seed records from the index children.

    Children without a ``path`` are listed but skipped; each seed keeps its
    position in the children list as its index.
    """
    logger = logging.getLogger(__name__)
    children = index_children(payload)

    seeds: List[PageRecord] = []
    for position, item in enumerate(children):
        if not isinstance(item, dict):
            logger.info(f"[{position}] Not an object - skipped")
            continue

        title = item.get('title')
        if not isinstance(title, str) or not title.strip():
            title = UNTITLED

        path = item.get('path')
        if not path:
            logger.info(f"[{position}] No path property - {title}")
            continue
        if not isinstance(path, str):
            logger.warning(f"[{position}] Path is not a string - {title}")
            continue

        logger.info(f"[{position}] {title}")
        seeds.append(PageRecord(
            url=normalize_url(resolve_url(path, origin)),
            title=title,
            source_type=SourceType.SEED,
            path=path,
            index=position,
            item_type=item.get('type') or 'unknown'
        ))

    logger.info(f"Found {len(children)} items ({len(seeds)} with paths)")
    return seeds
