"""
Output sinks hooked onto the document fetch.

Each sink owns its file: opened (and truncated) on __enter__, closed on
__exit__, never shared. Write failures are logged and kept in `errors`;
they never propagate into the fetch.
"""

import logging
from pathlib import Path
from typing import List

from .errors import SinkWriteError

LINK_PREFIX = "http"

# browsers drop these from URLs before parsing
_URL_CONTROL = str.maketrans("", "", "\t\r\n")


def _open_truncated(path: Path, mode: str):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return open(path, mode, encoding=None if "b" in mode else "utf-8")
    except OSError as e:
        raise SinkWriteError(f"File couldn't be created: {path}: {e}", path=path) from e


class _FileSink:
    mode = "wb"

    def __init__(self, path: Path):
        self.path = Path(path)
        self._fh = None
        self.errors: List[SinkWriteError] = []

    def __enter__(self):
        self._fh = _open_truncated(self.path, self.mode)
        return self

    def __exit__(self, exc_type, exc, tb):
        fh, self._fh = self._fh, None
        if fh is not None:
            try:
                fh.close()
            except OSError as e:
                self._fail(f"closing {self.path} failed: {e}")
        return False

    def _fail(self, message: str) -> SinkWriteError:
        err = SinkWriteError(message, path=self.path)
        logging.error("%s", err)
        self.errors.append(err)
        return err


class LinkExtractor(_FileSink):
    """Anchor hook: keeps hrefs starting with "http", one per line, in order."""

    mode = "w"

    @staticmethod
    def accepts(href: str) -> bool:
        return href.startswith(LINK_PREFIX)

    def __call__(self, href: str) -> None:
        href = href.translate(_URL_CONTROL)
        if not self.accepts(href):
            return
        try:
            self._fh.write(href + "\n")
            self._fh.flush()
        except (OSError, ValueError, AttributeError) as e:
            self._fail(f"Unable to write link {href}: {e}")
            return
        print(f"Link Detected: {href}")


class BodyPersister(_FileSink):
    """Response hook: dumps the raw body once, byte for byte."""

    def __init__(self, path: Path):
        super().__init__(path)
        self._attempted = False

    def __call__(self, body: bytes) -> None:
        if self._attempted:
            logging.warning("body already written to %s; ignoring extra response", self.path)
            return
        self._attempted = True
        try:
            self._fh.write(body)
            self._fh.flush()
        except (OSError, ValueError, AttributeError) as e:
            self._fail(f"Unable to write HTML content to {self.path}: {e}")
            return
        print(f"HTML content written to {self.path}")
