"""
Storage layer for crawled documentation pages.
"""

from .artifacts import Artifact, ArtifactStore, StorageError, build_artifact, sanitize_filename

__all__ = ['Artifact', 'ArtifactStore', 'StorageError', 'build_artifact', 'sanitize_filename']
