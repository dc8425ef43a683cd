"""
Scope filtering for documentation links.

A link is in scope when it resolves onto the site's host under
``/<docs_marker>/<namespace>/...``. Source identifiers are case-sensitive
while documentation paths are conventionally lower-case, so the namespace
segment is compared case-insensitively.
"""

from urllib.parse import urljoin, urlparse, urlunparse

DEFAULT_ORIGIN = "https://developer.apple.com"
DEFAULT_DOCS_MARKER = "documentation"


def resolve_url(link: str, base: str = DEFAULT_ORIGIN) -> str:
    """
    Resolve ``link`` to an absolute URL.

    ``base`` is the site origin for root-relative links, or the URL of the
    page the link appeared on when document-relative links must resolve too.
    """
    return urljoin(base, link.strip())


def normalize_url(url: str) -> str:
    """Canonical form used as the dedup key: lower-case host, no fragment."""
    parsed = urlparse(url)
    return urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        parsed.path,
        parsed.params,
        parsed.query,
        ''
    ))


def in_scope(link: str, namespace: str,
             origin: str = DEFAULT_ORIGIN,
             docs_marker: str = DEFAULT_DOCS_MARKER) -> bool:
    """
    Decide whether ``link`` belongs to the crawl of ``namespace``.

    Absolute links must point at the host of ``origin``; relative links are
    resolved against it. Never raises: malformed links, empty namespaces and
    non-HTTP schemes are simply out of scope.
    """
    try:
        if not isinstance(link, str) or not link.strip() or not namespace:
            return False

        parsed = urlparse(resolve_url(link, origin))
        if parsed.scheme not in ('http', 'https') or not parsed.hostname:
            return False
        if parsed.hostname != urlparse(origin).hostname:
            return False

        segments = [segment for segment in parsed.path.split('/') if segment]
        wanted = {namespace, namespace.lower()}
        marker = docs_marker.lower()

        for position, segment in enumerate(segments[:-1]):
            if segment.lower() != marker:
                continue
            candidate = segments[position + 1]
            if candidate in wanted or candidate.lower() in wanted:
                return True

        return False

    except (ValueError, TypeError, AttributeError):
        return False
