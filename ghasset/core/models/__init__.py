"""
Domain models — release metadata and pipeline payloads.

All models are re-exported here for convenient access:

    from ghasset.core.models import ReleaseRecord, AssetRecord, ArchiveKind
"""

from ghasset.core.models.payload import (
    ArchiveKind,
    ChecksumResult,
    ChecksumStatus,
    DigestAlgorithm,
    DownloadedPayload,
    ExtractedLayout,
)
from ghasset.core.models.release import (
    AssetRecord,
    ReleaseRecord,
    RepositoryRef,
    RepositoryVisibility,
)

__all__ = [
    # payload.py
    "ArchiveKind",
    # release.py
    "AssetRecord",
    "ChecksumResult",
    "ChecksumStatus",
    "DigestAlgorithm",
    "DownloadedPayload",
    "ExtractedLayout",
    "ReleaseRecord",
    "RepositoryRef",
    "RepositoryVisibility",
]
