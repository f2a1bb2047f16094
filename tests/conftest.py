import io

import pytest
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers
from PIL import Image

from pagecapture.fetcher import DocumentFetcher
from pagecapture.models import FetchResult

PAGE = b"""<html><body>
<a href="http://a">a</a>
<a href="/relative">rel</a>
<a href="https://b">b</a>
<a href="ftp://c">c</a>
</body></html>"""


class FakeResponse:
    def __init__(self, content=PAGE, status_code=200, content_type="text/html; charset=utf-8"):
        self.content = content
        self.status_code = status_code
        self.headers = CaseInsensitiveDict()
        if content_type:
            self.headers["Content-Type"] = content_type
        self.encoding = get_encoding_from_headers(self.headers)


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response if response is not None else FakeResponse()
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class StubFetcher(DocumentFetcher):
    """Replays a scripted document through the real hook dispatch."""

    def __init__(self, anchors=(), body=b"<html></html>", error=None, respond=True):
        super().__init__(session=FakeSession())
        self.anchors = list(anchors)
        self.body = body
        self.error = error
        self.respond = respond
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        if not self.respond:
            self._report(self.error)
            return None
        self._dispatch(self._response_handlers, self.body, url)
        for href in self.anchors:
            self._dispatch(self._anchor_handlers, href, url)
        if self.error is not None:
            self._report(self.error)
        return FetchResult(url=url, status=200, body=self.body, anchors=self.anchors)


class StubCapturer:
    def __init__(self, out_path, error=None, payload=b"img"):
        self.out_path = out_path
        self.error = error
        self.payload = payload
        self.calls = []

    def capture(self, url, proxy=None):
        self.calls.append((url, proxy))
        if self.error is not None:
            raise self.error
        self.out_path.parent.mkdir(parents=True, exist_ok=True)
        self.out_path.write_bytes(self.payload)
        return self.out_path


def jpeg_bytes(size=(8, 6), color=(200, 30, 30)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="JPEG", quality=90)
    return buf.getvalue()


@pytest.fixture
def page_bytes():
    return PAGE
