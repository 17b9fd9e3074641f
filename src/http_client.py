#!/usr/bin/env python3
"""
HTTP fetching for pages and scripts
requests runs in a worker thread so a fetch never blocks the event loop
"""

import asyncio
import errno
import socket
from dataclasses import dataclass
from typing import Optional

import requests

from errors import FetchError
from logging_setup import setup_logger


@dataclass
class FetchedResource:
    url: str
    status_code: int
    content_type: str
    text: str


def _connection_error_code(error: BaseException) -> Optional[str]:
    """Map a low-level connection failure to its conventional error code"""
    seen = set()
    current = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return 'ENOTFOUND'
        if isinstance(current, ConnectionRefusedError):
            return 'ECONNREFUSED'
        if isinstance(current, ConnectionResetError):
            return 'ECONNRESET'
        if isinstance(current, (socket.timeout, TimeoutError)):
            return 'ETIMEDOUT'
        if isinstance(current, OSError) and current.errno in (errno.ECONNREFUSED, errno.ECONNRESET, errno.ETIMEDOUT):
            return errno.errorcode[current.errno]
        # requests/urllib3 wrap the socket error several levels deep
        if current.args and isinstance(current.args[-1], BaseException):
            nested = current.args[-1]
        else:
            nested = getattr(current, 'reason', None)
            if not isinstance(nested, BaseException):
                nested = current.__cause__ or current.__context__
        current = nested

    text = str(error).lower()
    if 'name or service not known' in text or 'nodename nor servname' in text or 'failed to resolve' in text:
        return 'ENOTFOUND'
    if 'connection refused' in text:
        return 'ECONNREFUSED'
    if 'connection reset' in text:
        return 'ECONNRESET'
    return None


class HttpFetcher:
    """Fetches page and script bodies with requests"""

    def __init__(self, user_agent: str = 'Mozilla/5.0', timeout_ms: int = 30000, debug_mode: bool = True):
        self.user_agent = user_agent
        self.timeout_ms = timeout_ms
        self.logger = setup_logger('HttpFetcher', debug_mode)

    async def fetch(self, url: str, timeout_ms: Optional[int] = None) -> FetchedResource:
        """
        Fetch a URL

        Args:
            url: Absolute URL
            timeout_ms: Per-request timeout, defaults to the fetcher's timeout

        Raises:
            FetchError: on connection failures, timeouts and HTTP error statuses
        """
        timeout = (timeout_ms or self.timeout_ms) / 1000
        return await asyncio.to_thread(self._get, url, timeout)

    def _get(self, url: str, timeout: float) -> FetchedResource:
        self.logger.debug(f"🌐 GET {url}")
        headers = {'User-Agent': self.user_agent}

        try:
            response = requests.get(url, headers=headers, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise FetchError(url, f"Request timed out: {e}", code='ETIMEDOUT') from e
        except requests.exceptions.RequestException as e:
            raise FetchError(url, str(e), code=_connection_error_code(e)) from e

        if response.status_code >= 400:
            raise FetchError(url, f"HTTP {response.status_code}", status_code=response.status_code)

        return FetchedResource(
            url=url,
            status_code=response.status_code,
            content_type=response.headers.get('Content-Type', ''),
            text=response.text
        )
