from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional

# ---------- defaults ----------

LINKS_FILENAME = "links.txt"
HTML_FILENAME = "HTML.txt"
SCREENSHOT_FILENAME = "screenshot.png"

MODE_LINKS = "links"
MODE_HTML = "html"
MODE_SCREENSHOT = "screenshot"

# ---------- request ----------

@dataclass(frozen=True)
class CaptureRequest:
    url: str
    links: bool = False
    html: bool = False
    screenshot: bool = False
    proxy: Optional[str] = None
    out_dir: Path = Path(".")
    wait_timeout_ms: Optional[int] = None
    fetch_timeout: Optional[float] = None

    @property
    def no_modes(self) -> bool:
        return not (self.links or self.html or self.screenshot)

    def with_default_modes(self) -> "CaptureRequest":
        """No mode selected means every mode; an explicit selection is kept as is."""
        if self.no_modes:
            return replace(self, links=True, html=True, screenshot=True)
        return self

    @property
    def wants_document(self) -> bool:
        return self.links or self.html

    @property
    def links_path(self) -> Path:
        return Path(self.out_dir) / LINKS_FILENAME

    @property
    def html_path(self) -> Path:
        return Path(self.out_dir) / HTML_FILENAME

    @property
    def screenshot_path(self) -> Path:
        return Path(self.out_dir) / SCREENSHOT_FILENAME

# ---------- fetch ----------

@dataclass
class FetchResult:
    url: str
    status: Optional[int] = None
    body: bytes = b""
    anchors: List[str] = field(default_factory=list)

# ---------- outcome ----------

@dataclass
class ModeResult:
    mode: str
    ok: bool = True
    error: Optional[Exception] = None
    fatal: bool = False
    path: Optional[Path] = None


@dataclass
class CaptureOutcome:
    request: CaptureRequest
    modes: Dict[str, ModeResult] = field(default_factory=dict)
    fetch_errors: List[Exception] = field(default_factory=list)

    def record(self, mode: str, error: Optional[Exception] = None, fatal: bool = False,
               path: Optional[Path] = None) -> ModeResult:
        res = self.modes.get(mode)
        if res is None:
            res = ModeResult(mode=mode, path=path)
            self.modes[mode] = res
        if path is not None:
            res.path = path
        if error is not None:
            # first error wins; later ones for the same mode are only logged
            if res.ok:
                res.error = error
            res.ok = False
            res.fatal = res.fatal or fatal
        return res

    @property
    def ok(self) -> bool:
        return not any(r.fatal for r in self.modes.values())
