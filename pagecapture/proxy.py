"""
SOCKS5 routing shared by the document fetch and the browser session.

The endpoint is checked once, up front, with a SOCKS5 greeting. When the
check fails the run stops; there is no fallback to a direct connection.
"""

import logging
import re
import socket
from typing import Dict, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter

from .errors import ProxyUnavailableError

TOR_PROXY = "127.0.0.1:9050"  # Tor's default SOCKS port
PROBE_TIMEOUT_S = 5.0

_ENDPOINT_RE = re.compile(r"^(?:(?P<scheme>[a-z0-9]+)://)?(?P<host>\[[^\]]+\]|[^:/]+):(?P<port>\d+)/?$", re.I)
_SOCKS_SCHEMES = ("socks5", "socks5h")


def parse_endpoint(endpoint: str) -> Tuple[str, int]:
    m = _ENDPOINT_RE.match((endpoint or "").strip())
    if not m:
        raise ProxyUnavailableError(f"Invalid proxy endpoint: {endpoint!r} (expected host:port)")
    scheme = (m.group("scheme") or "socks5").lower()
    if scheme not in _SOCKS_SCHEMES:
        raise ProxyUnavailableError(f"Unsupported proxy scheme {scheme!r}; only SOCKS5 is supported")
    port = int(m.group("port"))
    if not 0 < port < 65536:
        raise ProxyUnavailableError(f"Invalid proxy port: {port}")
    return m.group("host").strip("[]"), port


class ProxyTransport:
    """A verified SOCKS5 endpoint, expressed for requests and for Playwright."""

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port

    @classmethod
    def open(cls, endpoint: str, probe: bool = True, timeout: float = PROBE_TIMEOUT_S) -> "ProxyTransport":
        host, port = parse_endpoint(endpoint)
        _require_socks_support()
        transport = cls(host, port)
        if probe:
            transport.probe(timeout)
        logging.info("routing traffic through SOCKS5 proxy %s", transport.address)
        return transport

    @property
    def address(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"

    def probe(self, timeout: float = PROBE_TIMEOUT_S) -> None:
        """Connect and run the no-auth SOCKS5 greeting; raise if it does not answer."""
        try:
            with socket.create_connection((self.host, self.port), timeout=timeout) as sock:
                sock.sendall(b"\x05\x01\x00")
                reply = sock.recv(2)
        except OSError as e:
            raise ProxyUnavailableError(f"Failed to set up SOCKS5 proxy {self.address}: {e}") from e
        if reply != b"\x05\x00":
            raise ProxyUnavailableError(
                f"Failed to set up SOCKS5 proxy {self.address}: unexpected greeting reply {reply!r}"
            )

    def requests_proxies(self) -> Dict[str, str]:
        # socks5h: hostnames (including .onion) are resolved by the proxy
        url = f"socks5h://{self.address}"
        return {"http": url, "https": url}

    def browser_proxy(self) -> Dict[str, str]:
        return {"server": f"socks5://{self.address}"}

    def mount(self, session: requests.Session, adapter: Optional[HTTPAdapter] = None) -> requests.Session:
        adapter = adapter or HTTPAdapter()
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.proxies.update(self.requests_proxies())
        session.trust_env = False
        return session


def _require_socks_support() -> None:
    try:
        import socks  # noqa: F401  (PySocks, pulled in by requests[socks])
    except ImportError as e:
        raise ProxyUnavailableError(
            "SOCKS support is not installed. Run: pip install 'requests[socks]'"
        ) from e
