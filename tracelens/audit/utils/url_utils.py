"""URL helpers for request classification.

This module answers the structural questions entity classification asks of a
URL: whether it parses at all, which scheme it uses, what its registrable
root domain is (public-suffix aware, via tldextract), and what the origin of
a browser-extension URL is.
"""

import re
from functools import lru_cache
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

import tldextract


CHROME_EXTENSION_SCHEME = "chrome-extension"

# Schemes that require a host to be well formed
_SPECIAL_SCHEMES = {'http', 'https', 'ws', 'wss', 'ftp'}

_SCHEME_RE = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]*$')


@lru_cache(maxsize=None)
def create_extractor(include_private_suffixes: bool = False) -> tldextract.TLDExtract:
    """Create a root-domain extractor backed by the bundled public suffix list.

    The extractor never fetches the suffix list over the network and keeps no
    disk cache.

    Args:
        include_private_suffixes: Treat private suffixes (github.io, ...) as
            public suffixes

    Returns:
        Configured TLDExtract instance
    """
    return tldextract.TLDExtract(
        cache_dir=None,
        suffix_list_urls=(),
        include_psl_private_domains=include_private_suffixes,
    )


def is_valid_url(url: str) -> bool:
    """Check if a string is a structurally valid absolute URL.

    Any scheme is accepted; hierarchical web schemes must carry a host and a
    numeric port if one is given.

    Example:
        >>> is_valid_url("about:blank")
        True
        >>> is_valid_url("https://")
        False
    """
    if not url or not isinstance(url, str):
        return False

    if url != url.strip() or any(ch in url for ch in '\n\r\t'):
        return False

    try:
        parts = urlsplit(url)
        # Raises ValueError for non-numeric or out of range ports
        parts.port
    except ValueError:
        return False

    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        return False

    scheme = parts.scheme.lower()
    if scheme in _SPECIAL_SCHEMES or scheme == CHROME_EXTENSION_SCHEME:
        if not parts.hostname or ' ' in parts.netloc:
            return False

    return True


def get_scheme(url: str) -> str:
    """Return the lowercased scheme of a URL, or an empty string."""
    try:
        return urlsplit(url).scheme.lower()
    except ValueError:
        return ""


def is_chrome_extension_url(url: str) -> bool:
    return get_scheme(url) == CHROME_EXTENSION_SCHEME


def is_http_url(url: str) -> bool:
    return get_scheme(url) in ('http', 'https')


def get_chrome_extension_origin(url: str) -> Optional[str]:
    """Return ``chrome-extension://<id>`` for an extension URL.

    Example:
        >>> get_chrome_extension_origin("chrome-extension://abc123/script.js")
        "chrome-extension://abc123"
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return None

    if parts.scheme.lower() != CHROME_EXTENSION_SCHEME or not parts.netloc:
        return None

    return f"{CHROME_EXTENSION_SCHEME}://{parts.netloc}"


def get_host(url: str) -> Optional[str]:
    """Return the host (including any port) of a URL."""
    try:
        return urlsplit(url).netloc or None
    except ValueError:
        return None


def _is_single_label_host(hostname: str) -> bool:
    return '.' not in hostname and ':' not in hostname and not hostname.isdigit()


def get_root_domain(url: str, extractor: Optional[tldextract.TLDExtract] = None) -> Optional[str]:
    """Extract the registrable root domain (eTLD+1) of a URL.

    Subdomains are stripped and multi-label public suffixes are honored.
    Single-label hosts such as ``localhost`` are their own root domain.
    IP addresses and bare public suffixes have no root domain.

    Args:
        url: URL to analyze
        extractor: Optional TLDExtract instance; defaults to the offline one

    Returns:
        Root domain, or None if it cannot be derived

    Examples:
        >>> get_root_domain("https://sub.example.com/a")
        "example.com"
        >>> get_root_domain("https://bar.example.co.uk/x")
        "example.co.uk"
        >>> get_root_domain("http://127.0.0.1:8080/")
        None
    """
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return None

    if not hostname:
        return None

    extractor = extractor or create_extractor()
    extracted = extractor(hostname)
    if not extracted.suffix and _is_single_label_host(hostname):
        return hostname
    if not extracted.domain or not extracted.suffix:
        return None

    return f"{extracted.domain}.{extracted.suffix}".lower()


def _strip_fragment(url: str) -> Optional[str]:
    """Canonical form of a URL without its fragment, or None if invalid."""
    if not is_valid_url(url):
        return None

    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    path = parts.path
    if scheme in _SPECIAL_SCHEMES and not path:
        path = '/'

    return urlunsplit((scheme, netloc, path, parts.query, ''))


def equal_with_excluded_fragments(url1: str, url2: str) -> bool:
    """Check if two URLs are equal once fragments are removed.

    Invalid URLs are never equal to anything.

    Example:
        >>> equal_with_excluded_fragments("https://example.com#top", "https://example.com/")
        True
    """
    stripped1 = _strip_fragment(url1)
    stripped2 = _strip_fragment(url2)
    if stripped1 is None or stripped2 is None:
        return False
    return stripped1 == stripped2
