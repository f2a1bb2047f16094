"""
Single-document fetch with callback hooks.

Callers register handlers before calling fetch():

    fetcher = DocumentFetcher()
    fetcher.on_error(lambda err: ...)
    fetcher.on_response(lambda body: ...)
    fetcher.on_anchor(lambda href: ...)
    fetcher.fetch(url)

Call cardinality per fetch: response 0..1, anchor 0..N, error 0..N.
"""

import logging
from typing import Callable, List, Optional

import requests
from bs4 import BeautifulSoup

from .errors import FetchError
from .models import FetchResult

DEFAULT_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome Safari"

AnchorHandler = Callable[[str], None]
ResponseHandler = Callable[[bytes], None]
ErrorHandler = Callable[[Exception], None]


def build_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    s = requests.Session()
    s.headers.update({"User-Agent": user_agent})
    return s


def looks_like_html(content_type: Optional[str]) -> bool:
    if not content_type:
        return True
    return "html" in content_type.lower()


def header_charset(resp) -> Optional[str]:
    """Encoding named by the Content-Type charset, or None to let bs4 sniff it."""
    content_type = resp.headers.get("Content-Type") or ""
    if "charset=" not in content_type.lower():
        return None
    return resp.encoding


def extract_anchors(body: bytes, encoding: Optional[str] = None) -> List[str]:
    """Raw href values of every a[href], in document order, unfiltered."""
    soup = BeautifulSoup(body, "html.parser", from_encoding=encoding)
    return [a.get("href", "") for a in soup.select("a[href]")]


class DocumentFetcher:
    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.session = session if session is not None else build_session()
        self.timeout = timeout
        self._anchor_handlers: List[AnchorHandler] = []
        self._response_handlers: List[ResponseHandler] = []
        self._error_handlers: List[ErrorHandler] = []

    # ---------- registration ----------

    def on_anchor(self, handler: AnchorHandler) -> None:
        self._anchor_handlers.append(handler)

    def on_response(self, handler: ResponseHandler) -> None:
        self._response_handlers.append(handler)

    def on_error(self, handler: ErrorHandler) -> None:
        self._error_handlers.append(handler)

    # ---------- dispatch ----------

    def _report(self, err: Exception) -> None:
        if not self._error_handlers:
            logging.warning("An error occurred: %s", err)
        for handler in self._error_handlers:
            handler(err)

    def _dispatch(self, handlers, value, url: str) -> None:
        for handler in handlers:
            try:
                handler(value)
            except Exception as e:
                self._report(FetchError(f"handler failed for {url}: {e}", url=url))

    # ---------- fetch ----------

    def fetch(self, url: str) -> Optional[FetchResult]:
        """GET url once and feed the hooks. Returns None when no response arrived."""
        logging.info("GET %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            self._report(FetchError(f"request to {url} failed: {e}", url=url))
            return None

        result = FetchResult(url=url, status=resp.status_code, body=resp.content)
        self._dispatch(self._response_handlers, result.body, url)

        if resp.status_code >= 400:
            self._report(FetchError(f"{url} -> HTTP {resp.status_code}", url=url, status=resp.status_code))

        if self._anchor_handlers and looks_like_html(resp.headers.get("Content-Type")):
            result.anchors = extract_anchors(result.body, header_charset(resp))
            for href in result.anchors:
                self._dispatch(self._anchor_handlers, href, url)
        return result
