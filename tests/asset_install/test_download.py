"""
Tests for the secure downloader — limits, empty payloads, sniffing.
"""

from __future__ import annotations

import threading
import time
import urllib.error
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from itertools import count

import pytest

from ghasset.core.errors import DownloadError, EmptyPayloadError
from ghasset.core.models import AssetRecord, RepositoryRef
from ghasset.core.services.asset_install.execution.download import SecureDownloader
from tests.conftest import API, ELF_EXEC_HEADER, make_tar_gz

REF = RepositoryRef(org="acme", name="tool")
ASSET = AssetRecord(id=42, name="tool-linux-amd64.tar.gz", content_type="application/gzip")
ASSET_URL = f"{API}/repos/acme/tool/releases/assets/42"


@pytest.fixture
def dest(tmp_path):
    return tmp_path / "scratch" / "download" / "tool-asset"


class TestDownload:
    def test_writes_payload_and_sniffs(self, settings, opener, dest):
        data = make_tar_gz({"tool": b"bin"})
        opener.add(ASSET_URL, body=data)

        payload = SecureDownloader(settings, opener=opener).download(REF, ASSET, dest)

        assert payload.path == dest
        assert payload.size == len(data)
        assert payload.sniffed_type == "application/gzip"
        assert dest.read_bytes() == data

    def test_requests_octet_stream(self, settings, opener, dest):
        opener.add(ASSET_URL, body=b"x")
        SecureDownloader(settings, opener=opener).download(REF, ASSET, dest)
        assert opener.requests[0].get_header("Accept") == "application/octet-stream"

    def test_sniffs_content_not_headers(self, settings, opener, dest):
        opener.add(ASSET_URL, body=ELF_EXEC_HEADER, headers={"Content-Type": "application/zip"})
        payload = SecureDownloader(settings, opener=opener).download(REF, ASSET, dest)
        assert payload.sniffed_type == "application/x-executable"

    def test_empty_payload(self, settings, opener, dest):
        opener.add(ASSET_URL, body=b"")
        with pytest.raises(EmptyPayloadError):
            SecureDownloader(settings, opener=opener).download(REF, ASSET, dest)
        assert not dest.exists()

    def test_http_error(self, settings, opener, dest):
        opener.add(ASSET_URL, status=404)
        with pytest.raises(DownloadError, match="404"):
            SecureDownloader(settings, opener=opener).download(REF, ASSET, dest)
        assert not dest.exists()

    def test_transport_error(self, settings, opener, dest):
        opener.fail(ASSET_URL, urllib.error.URLError("connection reset"))
        with pytest.raises(DownloadError):
            SecureDownloader(settings, opener=opener).download(REF, ASSET, dest)

    def test_declared_length_over_limit(self, settings, opener, dest):
        settings = settings.model_copy(update={"max_file_size": 10})
        opener.add(ASSET_URL, body=b"x" * 5, headers={"Content-Length": "11"})
        with pytest.raises(DownloadError, match="exceeds"):
            SecureDownloader(settings, opener=opener).download(REF, ASSET, dest)

    def test_streamed_bytes_over_limit(self, settings, opener, dest):
        settings = settings.model_copy(update={"max_file_size": 10})
        opener.add(ASSET_URL, body=b"x" * 11)
        with pytest.raises(DownloadError, match="exceeds"):
            SecureDownloader(settings, opener=opener).download(REF, ASSET, dest)
        assert not dest.exists()

    def test_exactly_at_limit(self, settings, opener, dest):
        settings = settings.model_copy(update={"max_file_size": 10})
        opener.add(ASSET_URL, body=b"x" * 10)
        payload = SecureDownloader(settings, opener=opener).download(REF, ASSET, dest)
        assert payload.size == 10

    def test_deadline(self, settings, opener, dest):
        settings = settings.model_copy(update={"download_timeout": 5})
        ticks = count(start=0, step=10)
        opener.add(ASSET_URL, body=b"x" * 10)
        downloader = SecureDownloader(settings, opener=opener, clock=lambda: next(ticks))
        with pytest.raises(DownloadError, match="timed out"):
            downloader.download(REF, ASSET, dest)
        assert not dest.exists()

    def test_asset_url(self, settings):
        assert SecureDownloader(settings).asset_url(REF, ASSET) == ASSET_URL


# ── Real sockets ────────────────────────────────────────────────


class _SlowHandler(BaseHTTPRequestHandler):
    """Serves a 12-byte body one byte at a time, or stalls after the headers."""

    stall = False

    def do_GET(self):  # noqa: N802
        self.send_response(200)
        self.send_header("Content-Length", "12")
        self.end_headers()
        try:
            if self.stall:
                time.sleep(5)
                return
            for _ in range(12):
                self.wfile.write(b"x")
                self.wfile.flush()
                time.sleep(0.5)
        except OSError:
            pass

    def log_message(self, *args):
        pass


@pytest.fixture
def slow_server(monkeypatch):
    # Loopback requests must not be routed through a proxy from the environment
    monkeypatch.setenv("no_proxy", "*")
    monkeypatch.setenv("NO_PROXY", "*")
    servers = []

    def start(stall: bool = False) -> str:
        handler = type("Handler", (_SlowHandler,), {"stall": stall})
        server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
        server.daemon_threads = True
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_address[1]}"

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


class TestWallClockDeadline:
    def _download(self, settings, base_url, dest):
        settings = settings.model_copy(update={"api_url": base_url, "download_timeout": 1.0})
        started = time.monotonic()
        with pytest.raises(DownloadError, match="timed out"):
            SecureDownloader(settings).download(REF, ASSET, dest)
        return time.monotonic() - started

    def test_trickling_server(self, settings, slow_server, dest):
        elapsed = self._download(settings, slow_server(), dest)
        assert elapsed < 3
        assert not dest.exists()

    def test_stalled_server(self, settings, slow_server, dest):
        elapsed = self._download(settings, slow_server(stall=True), dest)
        assert elapsed < 3
        assert not dest.exists()
