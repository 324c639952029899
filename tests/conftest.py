"""
Shared test fixtures: settings rooted in tmp_path, a fake urllib
opener, and archive builders.
"""

from __future__ import annotations

import io
import json
import tarfile
import urllib.error
import zipfile
from email.message import Message
from pathlib import Path

import pytest

from ghasset.core.config.loader import Settings

API = "https://api.github.test"


class FakeResponse:
    """Minimal stand-in for an ``http.client.HTTPResponse``."""

    def __init__(self, status: int = 200, body: bytes = b"", headers: dict | None = None):
        self.status = status
        self._buf = io.BytesIO(body)
        self.headers = headers or {}

    def getcode(self) -> int:
        return self.status

    def read(self, n: int = -1) -> bytes:
        return self._buf.read(n)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeOpener:
    """Routes URLs to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, object] = {}
        self.requests: list = []

    def add(self, url: str, status: int = 200, body: bytes | str = b"", headers: dict | None = None):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[url] = (status, body, headers or {})

    def add_json(self, url: str, payload, status: int = 200):
        self.add(url, status=status, body=json.dumps(payload))

    def fail(self, url: str, exc: Exception):
        self.routes[url] = exc

    def urls(self) -> list[str]:
        return [r.full_url for r in self.requests]

    def open(self, req, timeout=None):
        self.requests.append(req)
        route = self.routes.get(req.full_url)
        if route is None:
            raise urllib.error.URLError(f"no route for {req.full_url}")
        if isinstance(route, Exception):
            raise route
        status, body, headers = route
        if status >= 400:
            raise urllib.error.HTTPError(req.full_url, status, "error", Message(), io.BytesIO(body))
        return FakeResponse(status, body, headers)


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing cache, app and scratch dirs into tmp_path."""
    return Settings(
        cache_dir=tmp_path / "cache",
        app_dir=tmp_path / "app",
        scratch_dir=tmp_path / "scratch",
        api_url=API,
    )


# ── Archive builders ────────────────────────────────────────────


def make_tar_gz(files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_zip(files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


# 64-bit little-endian ELF header with e_type = ET_EXEC
ELF_EXEC_HEADER = b"\x7fELF\x02\x01\x01" + b"\x00" * 9 + b"\x02\x00" + b"\x3e\x00" + b"\x00" * 46
