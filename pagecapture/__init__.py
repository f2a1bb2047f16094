"""Single-page capture: links, raw HTML and a full-page screenshot."""

from .errors import (
    CaptureError,
    FetchError,
    InvalidInputError,
    PageCaptureError,
    ProxyUnavailableError,
    SinkWriteError,
)
from .models import CaptureOutcome, CaptureRequest, FetchResult
from .orchestrator import CaptureOrchestrator

__version__ = "0.1.0"
