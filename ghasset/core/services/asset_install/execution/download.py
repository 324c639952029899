"""
L4 Execution — Asset download and checksum verification.

Streams release assets to disk under a byte ceiling and a wall-clock
deadline, sniffs the real content type, and verifies digests.
"""

from __future__ import annotations

import hashlib
import logging
import time
import urllib.error
import urllib.request
from collections.abc import Callable
from pathlib import Path

from ghasset.core.config.loader import Settings
from ghasset.core.errors import (
    ChecksumMismatchError,
    DownloadError,
    EmptyPayloadError,
)
from ghasset.core.models.payload import (
    ChecksumResult,
    ChecksumStatus,
    DigestAlgorithm,
    DownloadedPayload,
)
from ghasset.core.models.release import AssetRecord, RepositoryRef
from ghasset.core.services.asset_install.domain.checksum import digests_match
from ghasset.core.services.asset_install.domain.content_type import (
    SNIFF_BYTES,
    sniff_mime_type,
)
from ghasset.core.services.asset_install.domain.download_helpers import _fmt_size
from ghasset.core.services.asset_install.execution.http import (
    CHUNK_SIZE,
    OCTET_STREAM,
    build_opener,
    make_request,
    read_some,
    set_read_timeout,
)

logger = logging.getLogger(__name__)


def sniff_file(path: Path) -> str:
    """Sniff the MIME type of a file on disk from its leading bytes."""
    with open(path, "rb") as f:
        return sniff_mime_type(f.read(SNIFF_BYTES))


class SecureDownloader:
    """Fetches asset bytes through the release API.

    Args:
        settings: Resolved settings (API URL, token, size/time limits).
        opener: ``urllib`` opener; see ``http.build_opener``.
        clock: Monotonic clock, injectable for deadline tests.
    """

    def __init__(
        self,
        settings: Settings,
        opener: urllib.request.OpenerDirector | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self._opener = opener or build_opener()
        self._clock = clock

    def asset_url(self, ref: RepositoryRef, asset: AssetRecord) -> str:
        base = self.settings.api_url.rstrip("/")
        return f"{base}/repos/{ref.org}/{ref.name}/releases/assets/{asset.id}"

    def download(
        self,
        ref: RepositoryRef,
        asset: AssetRecord,
        dest: Path,
    ) -> DownloadedPayload:
        """Download ``asset`` to ``dest``.

        Raises:
            DownloadError: Transport failure, HTTP error, size ceiling
                exceeded, or deadline expired. ``dest`` is removed.
            EmptyPayloadError: Zero bytes received. ``dest`` is removed.
        """
        url = self.asset_url(ref, asset)
        max_bytes = self.settings.max_file_size
        timeout = self.settings.download_timeout
        deadline = self._clock() + timeout

        dest.parent.mkdir(parents=True, exist_ok=True)
        req = make_request(url, accept=OCTET_STREAM, auth=self.settings.auth_headers())
        logger.info("Downloading %s from %s", asset.name, url)

        try:
            size = self._stream(req, dest, max_bytes=max_bytes, timeout=timeout, deadline=deadline)
        except urllib.error.HTTPError as exc:
            dest.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download {asset.name} (HTTP {exc.code})") from exc
        except (urllib.error.URLError, OSError) as exc:
            dest.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download {asset.name}: {exc}") from exc
        except DownloadError:
            dest.unlink(missing_ok=True)
            raise

        if size == 0:
            dest.unlink(missing_ok=True)
            raise EmptyPayloadError("Downloaded file is empty")

        sniffed = sniff_file(dest)
        logger.info("Downloaded %s (%s), file type: %s", asset.name, _fmt_size(size), sniffed)
        return DownloadedPayload(path=dest, size=size, sniffed_type=sniffed)

    def _stream(
        self,
        req: urllib.request.Request,
        dest: Path,
        *,
        max_bytes: int,
        timeout: float,
        deadline: float,
    ) -> int:
        with self._opener.open(req, timeout=timeout) as resp:
            status = resp.getcode()
            if status is not None and not 200 <= status < 300:
                raise DownloadError(f"Unexpected HTTP status {status}")

            declared = resp.headers.get("Content-Length") if resp.headers else None
            if declared and declared.isdigit() and int(declared) > max_bytes:
                raise DownloadError(
                    f"Asset size {_fmt_size(int(declared))} exceeds the "
                    f"{_fmt_size(max_bytes)} limit"
                )

            total = 0
            with open(dest, "wb") as f:
                while True:
                    remaining = deadline - self._clock()
                    if remaining <= 0:
                        raise DownloadError(f"Download timed out after {timeout:g}s")
                    # Every socket wait is capped by what is left of the deadline
                    set_read_timeout(resp, remaining)
                    try:
                        chunk = read_some(resp, CHUNK_SIZE)
                    except TimeoutError as exc:
                        raise DownloadError(f"Download timed out after {timeout:g}s") from exc
                    if not chunk:
                        break
                    total += len(chunk)
                    if total > max_bytes:
                        raise DownloadError(
                            f"Download exceeds the {_fmt_size(max_bytes)} limit"
                        )
                    f.write(chunk)
            return total


def verify_checksum(path: Path, expected: str) -> ChecksumResult:
    """Verify a file against a manifest digest.

    The algorithm is chosen from the digest length (32 → md5,
    40 → sha1, 64 → sha256). A missing digest, an unknown length or an
    unavailable hash algorithm skip verification instead of failing.

    Raises:
        ChecksumMismatchError: Digest computed but different.
    """
    expected = (expected or "").strip()
    if not expected:
        return ChecksumResult(ChecksumStatus.SKIPPED, reason="No checksum available for verification")

    algo = DigestAlgorithm.from_digest(expected)
    if algo is None:
        return ChecksumResult(
            ChecksumStatus.SKIPPED,
            expected=expected,
            reason=f"Unknown checksum format (length: {len(expected)})",
        )

    try:
        h = hashlib.new(str(algo))
    except ValueError:
        return ChecksumResult(
            ChecksumStatus.SKIPPED,
            algorithm=algo,
            expected=expected,
            reason=f"{algo} not available for verification",
        )

    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    actual = h.hexdigest()

    if not digests_match(expected, actual):
        raise ChecksumMismatchError(expected, actual)

    logger.info("Checksum verification passed (%s)", algo)
    return ChecksumResult(ChecksumStatus.VERIFIED, algorithm=algo, expected=expected, actual=actual)
