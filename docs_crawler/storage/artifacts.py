"""
Artifact storage: one markdown file per successfully extracted page.
"""

import re
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Any

if TYPE_CHECKING:
    from ..crawler.url_frontier import PageRecord

MAX_FILENAME_STEM = 100

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r'\s+')
_DISALLOWED = re.compile(r'[^\w\-_.]', re.ASCII)


class StorageError(Exception):
    """Raised when an artifact cannot be written."""
    pass


@dataclass(frozen=True)
class Artifact:
    """A persisted page: file name plus markdown body."""
    filename: str
    body: str


def sanitize_filename(title: str) -> str:
    """
    Turn a page title into a safe file name stem.

    Illegal path characters become ``-``, whitespace runs become ``_``,
    anything else outside ASCII letters, digits, ``-``, ``_`` and ``.`` is
    dropped, and the result is cut to 100 characters (and so 100 bytes).
    """
    name = _ILLEGAL_CHARS.sub('-', title)
    name = _WHITESPACE.sub('_', name)
    name = _DISALLOWED.sub('', name)
    return name[:MAX_FILENAME_STEM]


def build_artifact(record: "PageRecord", body: str) -> Artifact:
    """Derive the artifact of a successfully extracted page."""
    return Artifact(
        filename=f"{record.index:03d}_{sanitize_filename(record.title)}.md",
        body=body
    )


class ArtifactStore:
    """Writes artifacts into ``<output_directory>/<namespace>/``."""

    def __init__(self, output_directory: str, namespace: str):
        self.directory = Path(output_directory) / namespace
        self.logger = logging.getLogger(__name__)
        self.stats = {
            'total_stored': 0,
            'storage_errors': 0,
            'total_size_bytes': 0
        }

    def initialize(self) -> Path:
        """Create the output directory."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create output directory {self.directory}: {e}") from e

        self.logger.info(f"Output directory: {self.directory.resolve()}")
        return self.directory

    def write(self, artifact: Artifact) -> Path:
        """
        Write one artifact. The same filename overwrites the previous file.

        Raises:
            StorageError: the file could not be written
        """
        file_path = self.directory / artifact.filename
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(artifact.body)
        except OSError as e:
            self.stats['storage_errors'] += 1
            raise StorageError(f"Failed to write {file_path}: {e}") from e

        self.stats['total_stored'] += 1
        self.stats['total_size_bytes'] += file_path.stat().st_size

        self.logger.debug(f"Stored artifact to {file_path}")
        return file_path

    def get_stats(self) -> Dict[str, Any]:
        """Get storage statistics."""
        return self.stats.copy()
