"""
Full-page screenshot through a headless Chromium session.

One capture owns one Playwright driver, which owns one browser, which owns
one context/page. Everything is closed from the inside out on every exit.
"""

import io
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from PIL import Image
from playwright.sync_api import sync_playwright

from .errors import CaptureError
from .fetcher import DEFAULT_USER_AGENT
from .proxy import ProxyTransport

SCREENSHOT_QUALITY = 90
SCREENSHOT_MODE = 0o644
VISIBLE_SELECTOR = "body"

# ---------- states ----------

IDLE = "idle"
LAUNCHING = "browser_launching"
NAVIGATING = "navigating"
WAITING_VISIBLE = "waiting_visible"
CAPTURING = "capturing"
WRITING = "writing"
DONE = "done"
FAILED = "failed"

# ---------- image helpers ----------

def encode_for_path(buf: bytes, path: Path) -> bytes:
    """Re-encode a JPEG buffer into whatever format the file suffix names."""
    fmt = Image.registered_extensions().get(path.suffix.lower())
    if fmt is None or fmt == "JPEG":
        return buf
    with Image.open(io.BytesIO(buf)) as img:
        out = io.BytesIO()
        img.save(out, format=fmt)
        return out.getvalue()


def write_image(path: Path, data: bytes):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    os.chmod(path, SCREENSHOT_MODE)

# ---------- capturer ----------

class ScreenshotCapturer:
    def __init__(self, out_path: Path, wait_timeout_ms: Optional[int] = None,
                 quality: int = SCREENSHOT_QUALITY, user_agent: str = DEFAULT_USER_AGENT,
                 playwright_factory: Callable = sync_playwright):
        self.out_path = Path(out_path)
        self.wait_timeout_ms = wait_timeout_ms
        self.quality = quality
        self.user_agent = user_agent
        self._playwright_factory = playwright_factory
        self.state = IDLE

    def _enter(self, state: str):
        logging.debug("screenshot: %s -> %s", self.state, state)
        self.state = state

    def capture(self, url: str, proxy: Optional[ProxyTransport] = None) -> Path:
        """Navigate, wait for <body> to be visible, grab the full page and write it."""
        self._enter(LAUNCHING)
        try:
            with self._playwright_factory() as p:
                launch_kwargs = {"headless": True}
                if proxy is not None:
                    launch_kwargs["proxy"] = proxy.browser_proxy()
                browser = p.chromium.launch(**launch_kwargs)
                try:
                    context = browser.new_context(user_agent=self.user_agent)
                    try:
                        buf = self._shoot(context.new_page(), url)
                    finally:
                        context.close()
                finally:
                    browser.close()

            self._enter(WRITING)
            write_image(self.out_path, encode_for_path(buf, self.out_path))
        except CaptureError:
            self.state = FAILED
            raise
        except Exception as e:
            stage, self.state = self.state, FAILED
            raise CaptureError(f"failed to capture screenshot ({stage}): {e}", stage=stage) from e

        self._enter(DONE)
        return self.out_path

    def _shoot(self, page, url: str) -> bytes:
        self._enter(NAVIGATING)
        page.goto(url)

        self._enter(WAITING_VISIBLE)
        wait_kwargs = {"state": "visible"}
        if self.wait_timeout_ms is not None:
            wait_kwargs["timeout"] = self.wait_timeout_ms
        page.wait_for_selector(VISIBLE_SELECTOR, **wait_kwargs)

        self._enter(CAPTURING)
        return page.screenshot(full_page=True, type="jpeg", quality=self.quality)
