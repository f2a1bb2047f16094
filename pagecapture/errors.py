"""Error types raised or reported while capturing a page."""

from typing import Optional


class PageCaptureError(Exception):
    pass


class InvalidInputError(PageCaptureError):
    """Missing or empty target URL. Raised before anything runs."""


class ProxyUnavailableError(PageCaptureError):
    """The SOCKS5 endpoint could not be set up or reached."""


class FetchError(PageCaptureError):
    """Document fetch failed. Reported through the fetcher's error hook only."""

    def __init__(self, message: str, url: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class SinkWriteError(PageCaptureError):
    """Output file for links or body could not be created or written."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class CaptureError(PageCaptureError):
    """Screenshot pipeline failed. `stage` names where it stopped."""

    def __init__(self, message: str, stage: str = ""):
        super().__init__(message)
        self.stage = stage
