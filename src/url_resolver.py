#!/usr/bin/env python3
"""
URL helpers for Launch script discovery
Normalizes and absolutizes URLs and recognizes assets.adobedtm.com bundles
"""

import re
from typing import List, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from logging_setup import setup_logger


ADOBE_SCRIPT_PATTERNS = [
    re.compile(r'assets\.adobedtm\.com/.*/launch-.*\.js'),
    re.compile(r'assets\.adobedtm\.com/.*/satellite-.*\.js'),
    re.compile(r'assets\.adobedtm\.com/.*/DTM\.js')
]

SCRIPT_SRC_PATTERN = re.compile(r'<script[^>]+src=["\']([^"\']+)["\']', re.IGNORECASE)

# Direct references to other bundles inside a script's text
ADOBE_ASSET_URL_PATTERN = re.compile(r'(https?://assets\.adobedtm\.com/[^"\'\s]+\.js)')


class URLResolver:
    """Normalizes, absolutizes and classifies URLs"""

    def __init__(self, debug_mode: bool = True):
        self.logger = setup_logger('URLResolver', debug_mode)

    def normalize(self, url: str) -> Optional[str]:
        """
        Normalize an absolute URL

        Scheme and host are lower-cased and an empty path becomes '/'.

        Returns:
            The normalized URL, or None when the input is not a valid absolute URL
        """
        if not isinstance(url, str) or not url.strip():
            self.logger.warning(f"⚠ Invalid URL: {url!r}")
            return None

        try:
            parts = urlsplit(url.strip())
            # accessing port validates it
            parts.port
        except ValueError:
            self.logger.warning(f"⚠ Invalid URL: {url}")
            return None

        if not parts.scheme or not parts.netloc or not parts.hostname:
            self.logger.warning(f"⚠ Invalid URL: {url}")
            return None

        userinfo, at, hostport = parts.netloc.rpartition('@')
        if hostport.startswith('['):
            end = hostport.find(']') + 1
            host, port = hostport[:end], hostport[end:]
        else:
            host, colon, port = hostport.partition(':')
            port = colon + port
        netloc = f"{userinfo}{at}{host.lower()}{port}"

        path = parts.path or '/'
        return urlunsplit((parts.scheme.lower(), netloc, path, parts.query, parts.fragment))

    def is_recognized_script(self, url: str) -> bool:
        return any(pattern.search(url) for pattern in ADOBE_SCRIPT_PATTERNS)

    def is_script_url(self, url: str) -> bool:
        try:
            return urlsplit(url).path.endswith('.js')
        except ValueError:
            return False

    def get_unminified_url(self, url: str) -> str:
        return re.sub(r'\.min\.js$', '.js', url)

    def extract_script_references(self, html: str) -> List[str]:
        """Return recognized <script src> URLs in document order"""
        return [
            src for src in SCRIPT_SRC_PATTERN.findall(html)
            if self.is_recognized_script(src)
        ]

    def extract_asset_references(self, script_text: str) -> List[str]:
        """Return assets.adobedtm.com bundle URLs mentioned literally in script text"""
        return ADOBE_ASSET_URL_PATTERN.findall(script_text)

    def make_absolute(self, url: str, base_url: str) -> Optional[str]:
        try:
            joined = urljoin(base_url, url.strip())
        except ValueError:
            return None
        return self.normalize(joined)
