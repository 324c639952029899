"""
L4 Execution — HTTP plumbing shared by the release client and downloader.

Thin layer over ``urllib.request``: request construction, an opener
that drops credentials on cross-host redirects, and bounded reads.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from ghasset import __version__
from ghasset.core.errors import DownloadError

logger = logging.getLogger(__name__)

USER_AGENT = f"ghasset/{__version__}"
GITHUB_JSON = "application/vnd.github+json"
OCTET_STREAM = "application/octet-stream"

CHUNK_SIZE = 64 * 1024


class StripAuthRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Follow redirects, but never forward ``Authorization`` to another host.

    Release assets are served by a CDN host after a redirect from the
    API; the CDN rejects (and must not receive) the API token.
    """

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[override]
        new = super().redirect_request(req, fp, code, msg, headers, newurl)
        if new is None:
            return None
        old_host = urllib.parse.urlsplit(req.full_url).hostname
        new_host = urllib.parse.urlsplit(new.full_url).hostname
        if old_host != new_host and new.has_header("Authorization"):
            logger.debug("Dropping Authorization header on redirect to %s", new_host)
            new.remove_header("Authorization")
        return new


def build_opener() -> urllib.request.OpenerDirector:
    """Return the opener used for every request the installer makes."""
    return urllib.request.build_opener(StripAuthRedirectHandler())


def make_request(url: str, *, accept: str, auth: dict[str, str] | None = None) -> urllib.request.Request:
    headers = {"Accept": accept, "User-Agent": USER_AGENT}
    if auth:
        headers.update(auth)
    return urllib.request.Request(url, headers=headers)


def read_limited(resp: Any, limit: int) -> bytes:
    """Read a whole response body, failing once it exceeds ``limit`` bytes."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = resp.read(CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise DownloadError(f"Response exceeds the {limit} byte limit")
        chunks.append(chunk)
    return b"".join(chunks)


def read_some(resp: Any, n: int) -> bytes:
    """Return whatever arrives next, up to ``n`` bytes.

    ``HTTPResponse.read1`` returns after a single socket read, whereas
    ``read(n)`` keeps waiting until ``n`` bytes or EOF, which lets a
    slow server hold the caller far past any deadline.
    """
    read1 = getattr(resp, "read1", None)
    return read1(n) if read1 is not None else resp.read(n)


def set_read_timeout(resp: Any, seconds: float) -> None:
    """Set the timeout of the socket behind a ``urllib`` response.

    No-op for responses without a live socket (fully read, closed, or
    not socket-backed).
    """
    # HTTPResponse.fp is the socket's buffered reader; SocketIO keeps the socket in _sock
    raw = getattr(getattr(resp, "fp", None), "raw", None)
    sock = getattr(raw, "_sock", None)
    if sock is not None:
        sock.settimeout(max(seconds, 0.001))


def http_error_body(exc: urllib.error.HTTPError, limit: int = 4096) -> str:
    """Best-effort decode of an error response body."""
    try:
        data = exc.read(limit) if exc.fp is not None else b""
    except OSError:
        return ""
    return data.decode("utf-8", errors="replace")
