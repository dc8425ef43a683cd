"""
URL Frontier implementation for managing pages to crawl.

Every URL moves through ``unseen -> pending -> visited`` exactly once. A URL
becomes visited at the moment it is drained into a batch, not when its page
finishes processing, so a link rediscovered while its own batch is in
flight is never dispatched twice.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Set, Optional, List

UNTITLED = "untitled"


class SourceType(Enum):
    """Where a page record came from."""
    SEED = "seed"
    DISCOVERED = "discovered"


@dataclass(frozen=True)
class PageRecord:
    """A page to crawl. ``url`` is the dedup key."""
    url: str
    title: str
    source_type: SourceType = SourceType.DISCOVERED
    path: Optional[str] = None
    index: Optional[int] = None
    item_type: str = "unknown"


class URLFrontier:
    """
    Tracks pending and visited pages and hands out bounded batches.

    Only the coordinating flow mutates the frontier, so no locking is
    needed. Stable indices come from a single monotonic counter owned by
    the frontier.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

        self.visited: Set[str] = set()
        # dict keeps insertion order, which makes draining deterministic
        self.pending: Dict[str, PageRecord] = {}

        self._next_index = 0
        self.rejected_count = 0

    def admit(self, record: PageRecord) -> Optional[PageRecord]:
        """
        Add a page to the frontier.

        Returns the admitted record carrying its stable index, or None if
        the URL was already visited or pending.
        """
        if record.url in self.visited or record.url in self.pending:
            self.rejected_count += 1
            self.logger.debug(f"Skipping already seen URL: {record.url}")
            return None

        # An explicit index (seed position) is honoured if it keeps the
        # counter monotonic; otherwise the next free index is used.
        if record.index is not None and record.index >= self._next_index:
            index = record.index
        else:
            index = self._next_index
        self._next_index = index + 1

        admitted = replace(record, index=index)
        self.pending[admitted.url] = admitted

        self.logger.debug(f"Added URL to frontier: [{index}] {admitted.url}")
        return admitted

    def admit_many(self, records: List[PageRecord]) -> List[PageRecord]:
        """Admit multiple records. Returns the ones that took effect."""
        admitted = []
        for record in records:
            result = self.admit(record)
            if result is not None:
                admitted.append(result)
        return admitted

    def drain_batch(self, limit: int) -> List[PageRecord]:
        """
        Remove up to ``limit`` pending records and mark them visited.

        Records are returned in admission order.
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")

        batch: List[PageRecord] = []
        for url in list(self.pending)[:limit]:
            record = self.pending.pop(url)
            self.visited.add(url)
            batch.append(record)

        if batch:
            self.logger.debug(f"Drained batch of {len(batch)} URLs, {len(self.pending)} still pending")
        return batch

    def pending_count(self) -> int:
        """Number of admitted pages not yet drained."""
        return len(self.pending)

    def is_empty(self) -> bool:
        """Check if there is nothing left to drain."""
        return not self.pending

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        return {
            'total_queued': len(self.pending),
            'total_visited': len(self.visited),
            'total_rejected': self.rejected_count,
            'next_index': self._next_index
        }
