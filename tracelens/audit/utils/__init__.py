"""URL utilities for entity classification."""

from .url_utils import (
    CHROME_EXTENSION_SCHEME,
    create_extractor,
    is_valid_url,
    get_scheme,
    is_chrome_extension_url,
    is_http_url,
    get_chrome_extension_origin,
    get_host,
    get_root_domain,
    equal_with_excluded_fragments,
)

__all__ = [
    'CHROME_EXTENSION_SCHEME',
    'create_extractor',
    'is_valid_url',
    'get_scheme',
    'is_chrome_extension_url',
    'is_http_url',
    'get_chrome_extension_origin',
    'get_host',
    'get_root_domain',
    'equal_with_excluded_fragments',
]
