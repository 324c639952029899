"""
L1 Domain — Asset selection (pure).

Picks the downloadable asset out of a resolved release, either by
Linux/x86-64 name heuristics or by exact name.

No I/O, no subprocess.
"""

from __future__ import annotations

import logging

from ghasset.core.errors import AssetNotFoundError, MalformedAssetError
from ghasset.core.models.release import AssetRecord, ReleaseRecord

logger = logging.getLogger(__name__)

ARCH_TOKENS = ("x86", "amd64")
ARCHIVE_SUFFIXES = (".tgz", ".tar.gz", ".gz", ".zip", ".tar.bz2", ".tar.xz")


def is_linux_x86_64_archive(name: str) -> bool:
    """Auto-detect predicate for a Linux/x86-64 archive asset name."""
    lowered = name.lower()
    return (
        "linux" in lowered
        and any(tok in lowered for tok in ARCH_TOKENS)
        and lowered.endswith(ARCHIVE_SUFFIXES)
    )


def select_asset(release: ReleaseRecord, asset_name: str | None = None) -> AssetRecord:
    """Select the asset to install from ``release``.

    Args:
        release: Resolved release record.
        asset_name: Exact asset filename. Empty means auto-detect.

    Returns:
        The first matching AssetRecord in API order.

    Raises:
        AssetNotFoundError: If nothing matches.
        MalformedAssetError: If the match has no id or no name.
    """
    if asset_name:
        logger.debug("Searching for asset: %s", asset_name)
        matches = [a for a in release.assets if a.name == asset_name]
    else:
        logger.debug("Auto-detecting linux/x86_64 asset in %s", release.tag)
        matches = [a for a in release.assets if a.name and is_linux_x86_64_archive(a.name)]

    if not matches:
        available = [a.name for a in release.assets[:10]]
        raise AssetNotFoundError(
            f"Can't find matching asset for release {release.tag}"
            + (f" (available: {', '.join(n for n in available if n)})" if available else "")
        )

    asset = matches[0]

    if asset.id is None:
        raise MalformedAssetError("Can't extract asset ID from API response")
    if not asset.name:
        raise MalformedAssetError("Can't extract asset name from API response")

    return asset
