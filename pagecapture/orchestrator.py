"""
Runs one capture: document fetch (links + body) first, then the screenshot.

Link/body/fetch failures are logged and recorded but never stop the run.
A screenshot failure is recorded as fatal. Invalid input and an unusable
proxy raise before anything is fetched.
"""

import logging
from contextlib import ExitStack
from typing import Callable, Optional

from .errors import CaptureError, InvalidInputError, SinkWriteError
from .fetcher import DocumentFetcher, build_session
from .models import MODE_HTML, MODE_LINKS, MODE_SCREENSHOT, CaptureOutcome, CaptureRequest
from .proxy import ProxyTransport
from .screenshot import ScreenshotCapturer
from .sinks import BodyPersister, LinkExtractor


def default_fetcher(request: CaptureRequest, proxy: Optional[ProxyTransport]) -> DocumentFetcher:
    session = build_session()
    if proxy is not None:
        proxy.mount(session)
    return DocumentFetcher(session, timeout=request.fetch_timeout)


def default_capturer(request: CaptureRequest) -> ScreenshotCapturer:
    return ScreenshotCapturer(request.screenshot_path, wait_timeout_ms=request.wait_timeout_ms)


class CaptureOrchestrator:
    def __init__(self,
                 fetcher_factory: Callable[[CaptureRequest, Optional[ProxyTransport]], DocumentFetcher] = default_fetcher,
                 capturer_factory: Callable[[CaptureRequest], ScreenshotCapturer] = default_capturer,
                 proxy_factory: Callable[[str], ProxyTransport] = ProxyTransport.open):
        self.fetcher_factory = fetcher_factory
        self.capturer_factory = capturer_factory
        self.proxy_factory = proxy_factory

    def run(self, request: CaptureRequest) -> CaptureOutcome:
        if not request.url or not request.url.strip():
            raise InvalidInputError("No URL provided. Please input a URL to capture")

        request = request.with_default_modes()
        proxy = self.proxy_factory(request.proxy) if request.proxy else None

        outcome = CaptureOutcome(request=request)
        if request.wants_document:
            self._capture_document(request, proxy, outcome)
        if request.screenshot:
            self._capture_screenshot(request, proxy, outcome)
        return outcome

    # ---------- document ----------

    def _capture_document(self, request: CaptureRequest, proxy: Optional[ProxyTransport],
                          outcome: CaptureOutcome):
        fetcher = self.fetcher_factory(request, proxy)

        def on_error(err: Exception):
            logging.error("An error occurred: %s", err)
            outcome.fetch_errors.append(err)

        fetcher.on_error(on_error)

        sinks = []
        with ExitStack() as stack:
            if request.links:
                sinks.append((MODE_LINKS, self._open_sink(stack, LinkExtractor(request.links_path), MODE_LINKS,
                                                         fetcher.on_anchor, outcome)))
            if request.html:
                sinks.append((MODE_HTML, self._open_sink(stack, BodyPersister(request.html_path), MODE_HTML,
                                                        fetcher.on_response, outcome)))

            if any(sink is not None for _, sink in sinks):
                fetcher.fetch(request.url)
            else:
                logging.warning("no output file could be opened; skipping document fetch")

        for mode, sink in sinks:
            if sink is None:
                continue
            for err in sink.errors:
                outcome.record(mode, err, path=sink.path)
            if not sink.errors:
                outcome.record(mode, path=sink.path)

    @staticmethod
    def _open_sink(stack: ExitStack, sink, mode: str, register, outcome: CaptureOutcome):
        try:
            stack.enter_context(sink)
        except SinkWriteError as e:
            logging.error("%s", e)
            outcome.record(mode, e, path=sink.path)
            return None
        register(sink)
        return sink

    # ---------- screenshot ----------

    def _capture_screenshot(self, request: CaptureRequest, proxy: Optional[ProxyTransport],
                            outcome: CaptureOutcome):
        capturer = self.capturer_factory(request)
        try:
            path = capturer.capture(request.url, proxy)
        except CaptureError as e:
            logging.error("Error capturing screenshot: %s", e)
            outcome.record(MODE_SCREENSHOT, e, fatal=True, path=request.screenshot_path)
            return
        outcome.record(MODE_SCREENSHOT, path=path)
        print("Screenshot captured successfully!")
