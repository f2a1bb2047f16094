#!/usr/bin/env python3
"""
pagecapture (single URL, optional SOCKS5/Tor routing)

- Writes absolute-looking links to <out>/links.txt
- Dumps the raw response body to <out>/HTML.txt
- Saves a full-page screenshot to <out>/screenshot.png
- No mode flag selects all three
- --tor / --proxy route both the fetch and the browser through SOCKS5
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import InvalidInputError, ProxyUnavailableError
from .models import CaptureOutcome, CaptureRequest
from .orchestrator import CaptureOrchestrator
from .proxy import TOR_PROXY

EXIT_OK = 0
EXIT_CAPTURE_FAILED = 1
EXIT_USAGE = 2

EXAMPLE = "pagecapture --html --links --screenshot --tor http://example.onion"

# ---------- CLI ----------

def build_parser() -> argparse.ArgumentParser:
    # -h is the HTML flag here, so help only answers to --help
    ap = argparse.ArgumentParser(
        prog="pagecapture",
        description="Save links, raw HTML and a full-page screenshot of one web page.",
        epilog=f"Example:\n  {EXAMPLE}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    ap.add_argument("url", nargs="?", help="Target URL (e.g. http://example.onion)")
    ap.add_argument("-l", "--links", action="store_true", help="Extract links from the webpage")
    ap.add_argument("-h", "--html", action="store_true", help="Save HTML content of the webpage")
    ap.add_argument("-s", "--screenshot", action="store_true", help="Take a screenshot of the webpage")
    ap.add_argument("--proxy", default=None, metavar="HOST:PORT",
                    help="Route all traffic through this SOCKS5 endpoint.")
    ap.add_argument("--tor", action="store_true", help=f"Shortcut for --proxy {TOR_PROXY}")
    ap.add_argument("-o", "--out-dir", default=".", help="Output directory (default: current directory)")
    ap.add_argument("--wait-timeout-ms", type=int, default=None,
                    help="Timeout for the page to become visible (default: browser default).")
    ap.add_argument("--fetch-timeout", type=float, default=None,
                    help="Timeout in seconds for the HTML fetch (default: none).")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    ap.add_argument("--help", action="help", help="Show this help message and exit.")
    return ap


def request_from_args(args: argparse.Namespace) -> CaptureRequest:
    if not args.url or not args.url.strip():
        raise InvalidInputError("No URL provided. Please input a URL to capture")
    proxy = args.proxy or (TOR_PROXY if args.tor else None)
    return CaptureRequest(
        url=args.url.strip(),
        links=args.links,
        html=args.html,
        screenshot=args.screenshot,
        proxy=proxy,
        out_dir=Path(args.out_dir),
        wait_timeout_ms=args.wait_timeout_ms,
        fetch_timeout=args.fetch_timeout,
    )


def report(outcome: CaptureOutcome):
    for mode, res in outcome.modes.items():
        status = "ok" if res.ok else f"FAILED ({res.error})"
        where = f" -> {res.path}" if res.path and res.ok else ""
        print(f"   {mode:<10} {status}{where}")
    if outcome.fetch_errors:
        print(f"   fetch errors: {len(outcome.fetch_errors)}")


def main(argv: Optional[List[str]] = None, orchestrator: Optional[CaptureOrchestrator] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        request = request_from_args(args)
        if request.no_modes:
            print(f"No flags were chosen, setting all flags for {request.url}")
        outcome = (orchestrator or CaptureOrchestrator()).run(request)
    except (InvalidInputError, ProxyUnavailableError) as e:
        logging.error("%s", e)
        return EXIT_USAGE

    report(outcome)
    if not outcome.ok:
        return EXIT_CAPTURE_FAILED
    print("Done!")
    return EXIT_OK


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
