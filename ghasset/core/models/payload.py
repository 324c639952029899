"""
Payload models — what flows between download, verification,
extraction and installation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class ArchiveKind(StrEnum):
    """How a downloaded asset is unpacked, derived from its declared type."""

    ZIP = "zip"
    TAR_GZ = "tar_gz"
    OTHER = "other"

    @classmethod
    def from_content_type(cls, content_type: str) -> ArchiveKind:
        ct = (content_type or "").strip().lower()
        if ct == "application/zip":
            return cls.ZIP
        if ct in _TAR_FAMILY_DECLARED:
            return cls.TAR_GZ
        return cls.OTHER


_TAR_FAMILY_DECLARED = frozenset({
    "application/gzip",
    "application/x-gzip",
    "application/x-tar",
    "application/x-gtar",
})


class DigestAlgorithm(StrEnum):
    """Hash algorithms recognised in checksum manifests."""

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"

    @classmethod
    def from_digest(cls, digest: str) -> DigestAlgorithm | None:
        """Pick the algorithm from the hex digest length (32/40/64)."""
        return _DIGEST_LENGTHS.get(len(digest))


_DIGEST_LENGTHS = {
    32: DigestAlgorithm.MD5,
    40: DigestAlgorithm.SHA1,
    64: DigestAlgorithm.SHA256,
}


class ChecksumStatus(StrEnum):
    VERIFIED = "verified"
    SKIPPED = "skipped"


@dataclass
class ChecksumResult:
    """Outcome of a digest comparison that did not fail."""

    status: ChecksumStatus
    algorithm: DigestAlgorithm | None = None
    expected: str = ""
    actual: str = ""
    reason: str = ""

    @property
    def verified(self) -> bool:
        return self.status == ChecksumStatus.VERIFIED

    def to_dict(self) -> dict:
        return {
            "status": str(self.status),
            "algorithm": str(self.algorithm) if self.algorithm else None,
            "expected": self.expected,
            "actual": self.actual,
            "reason": self.reason,
        }


@dataclass
class DownloadedPayload:
    """Asset bytes on disk plus the type sniffed from their content."""

    path: Path
    size: int
    sniffed_type: str


@dataclass
class ExtractedLayout:
    """The scratch tree after extraction (or after placing a raw binary)."""

    root: Path
    kind: ArchiveKind
    files: list[Path] = field(default_factory=list)
