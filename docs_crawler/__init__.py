"""
Documentation Crawler

Crawls a documentation namespace from its seed index, extracts the readable
content of every in-scope page and stores it as markdown.
"""

__version__ = "1.0.0"
__description__ = "Incremental documentation crawler producing one markdown file per page"
