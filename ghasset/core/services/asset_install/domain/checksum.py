"""
L1 Domain — Checksum manifest helpers (pure).

Finds the checksum manifest among a release's assets and pulls the
expected digest for a given asset out of its text.

Manifests are free-form (``sha256sum`` output, ``<digest>  <file>``
lines, goreleaser ``checksums.txt``, ...).  Matching is a plain
substring search of the asset name, so an asset whose name is a
substring of another asset's name may pick up the wrong line.

Note: hashing the payload is NOT here — it reads files.
It lives in L4 (execution/download.py).
"""

from __future__ import annotations

import posixpath
import re

from ghasset.core.models.release import AssetRecord, ReleaseRecord

_MANIFEST_NAME_RE = re.compile(r"checksum|sha256|sha1|md5|sum", re.IGNORECASE)


def is_checksum_manifest(name: str) -> bool:
    return bool(_MANIFEST_NAME_RE.search(name))


def find_checksum_asset(release: ReleaseRecord) -> AssetRecord | None:
    """Return the first asset of ``release`` that looks like a manifest."""
    for asset in release.assets:
        if asset.name and is_checksum_manifest(asset.name):
            return asset
    return None


def _first_token_of_matching_line(manifest: str, needle: str) -> str:
    for line in manifest.splitlines():
        if needle in line:
            tokens = line.split()
            return tokens[0] if tokens else ""
    return ""


def extract_expected_digest(manifest: str, asset_name: str) -> str:
    """Extract the digest recorded for ``asset_name`` in a manifest.

    The first line containing the asset name wins; if none does, the
    search is retried with the base filename. The digest is the first
    whitespace-delimited token of that line.

    Returns:
        The digest string, or ``""`` when no line matches.
    """
    if not asset_name:
        return ""

    digest = _first_token_of_matching_line(manifest, asset_name)
    if digest:
        return digest

    base = posixpath.basename(asset_name)
    if base and base != asset_name:
        return _first_token_of_matching_line(manifest, base)
    return ""


def digests_match(expected: str, actual: str) -> bool:
    """Compare two hex digests, ignoring case and surrounding whitespace."""
    return expected.strip().lower() == actual.strip().lower()
