#!/usr/bin/env python3
"""
Error types surfaced by the container extractor
"""

from typing import Optional


class ExtractorError(Exception):
    """Base class for every error raised by the extractor"""


class NotFoundError(ExtractorError):
    """No extraction strategy produced a _satellite container"""

    def __init__(self, message: str = "Could not find _satellite.container in script", url: Optional[str] = None):
        self.url = url
        if url:
            message = f"{message} ({url})"
        super().__init__(message)


class FetchError(ExtractorError):
    """
    Network failure while fetching a page or script

    Args:
        url: URL that was being fetched
        message: Description of the underlying failure
        status_code: HTTP status when the server answered with an error
        code: Connection error code (ECONNREFUSED, ETIMEDOUT, ENOTFOUND, ECONNRESET)
    """

    def __init__(self, url: str, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.url = url
        self.status_code = status_code
        self.code = code
        super().__init__(f"Failed to fetch {url}: {message}")


class InvalidUrlError(ExtractorError):
    """Input URL could not be parsed into an absolute URL"""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url}")
