import requests

from conftest import FakeResponse, FakeSession
from pagecapture.errors import FetchError
from pagecapture.fetcher import DocumentFetcher, extract_anchors, looks_like_html


def _wired(session):
    events = []
    f = DocumentFetcher(session=session, timeout=7)
    f.on_response(lambda body: events.append(("response", body)))
    f.on_anchor(lambda href: events.append(("anchor", href)))
    f.on_error(lambda err: events.append(("error", err)))
    return f, events


def test_anchor_per_element_in_document_order(page_bytes):
    f, events = _wired(FakeSession())
    result = f.fetch("http://site")

    assert events[0] == ("response", page_bytes)
    assert [v for k, v in events if k == "anchor"] == ["http://a", "/relative", "https://b", "ftp://c"]
    assert result.anchors == ["http://a", "/relative", "https://b", "ftp://c"]
    assert result.status == 200


def test_single_get_with_timeout():
    session = FakeSession()
    f, _ = _wired(session)
    f.fetch("http://site")
    assert session.calls == [("http://site", 7)]


def test_transport_error_reported_not_raised():
    f, events = _wired(FakeSession(error=requests.ConnectionError("refused")))
    assert f.fetch("http://down") is None
    assert len(events) == 1
    kind, err = events[0]
    assert kind == "error"
    assert isinstance(err, FetchError)
    assert err.url == "http://down"


def test_error_status_reports_after_response():
    resp = FakeResponse(content=b"<a href='http://x'>x</a>", status_code=503)
    f, events = _wired(FakeSession(resp))
    f.fetch("http://site")
    kinds = [k for k, _ in events]
    assert kinds.index("response") < kinds.index("error")
    err = dict((k, v) for k, v in events if k == "error")["error"]
    assert err.status == 503


def test_non_html_body_skips_anchor_parsing():
    resp = FakeResponse(content=b'{"a": "<a href=\\"http://x\\">"}', content_type="application/json")
    f, events = _wired(FakeSession(resp))
    f.fetch("http://site/api")
    assert [k for k, _ in events] == ["response"]


def test_duplicate_anchors_are_kept():
    assert extract_anchors(b'<a href="http://a"></a><a href="http://a"></a><a>no href</a>') == [
        "http://a", "http://a",
    ]


def test_failing_hook_does_not_stop_others():
    seen, errors = [], []
    f = DocumentFetcher(session=FakeSession())

    def boom(href):
        raise OSError("disk gone")

    f.on_anchor(boom)
    f.on_anchor(seen.append)
    f.on_error(errors.append)
    f.fetch("http://site")
    assert seen == ["http://a", "/relative", "https://b", "ftp://c"]
    assert len(errors) == 4
    assert all(isinstance(e, FetchError) for e in errors)


def test_no_error_hook_logs(caplog):
    f = DocumentFetcher(session=FakeSession(error=requests.Timeout("slow")))
    f.fetch("http://slow")
    assert "An error occurred" in caplog.text


def test_looks_like_html():
    assert looks_like_html(None)
    assert looks_like_html("application/xhtml+xml")
    assert not looks_like_html("image/png")


def test_header_charset_decodes_anchors():
    href = "http://пример.рф/страница"
    body = f'<html><body><a href="{href}">x</a></body></html>'.encode("windows-1251")
    resp = FakeResponse(content=body, content_type="text/html; charset=windows-1251")
    f, events = _wired(FakeSession(resp))
    result = f.fetch("http://site")
    assert result.anchors == [href]
    assert ("response", body) in events


def test_no_header_charset_lets_parser_sniff():
    body = '<meta charset="utf-8"><a href="http://example.com/ü">x</a>'.encode("utf-8")
    resp = FakeResponse(content=body, content_type="text/html")
    assert FakeSession(resp).get("http://site").encoding == "ISO-8859-1"
    f, _ = _wired(FakeSession(resp))
    assert f.fetch("http://site").anchors == ["http://example.com/ü"]
