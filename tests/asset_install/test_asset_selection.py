"""
Tests for asset selection — auto-detect heuristics and exact matching.
"""

from __future__ import annotations

import pytest

from ghasset.core.errors import AssetNotFoundError, MalformedAssetError
from ghasset.core.models import AssetRecord, ReleaseRecord
from ghasset.core.services.asset_install.domain.asset_selection import (
    is_linux_x86_64_archive,
    select_asset,
)


def _release(*names: str) -> ReleaseRecord:
    return ReleaseRecord(
        tag="v1.0",
        assets=[AssetRecord(id=i + 1, name=n) for i, n in enumerate(names)],
    )


class TestAutoDetectPredicate:
    @pytest.mark.parametrize(
        "name",
        [
            "tool-linux-amd64.tar.gz",
            "tool_Linux_x86_64.tgz",
            "TOOL-LINUX-AMD64.ZIP",
            "tool-linux-x86_64.tar.xz",
            "tool-linux-amd64.tar.bz2",
            "tool-linux-amd64.gz",
        ],
    )
    def test_matches(self, name):
        assert is_linux_x86_64_archive(name)

    @pytest.mark.parametrize(
        "name",
        [
            "tool-darwin-amd64.tar.gz",
            "tool-linux-arm64.tar.gz",
            "tool-linux-amd64",
            "tool-linux-amd64.deb",
            "tool-linux-amd64.tar.gz.sha256",
            "checksums.txt",
        ],
    )
    def test_rejects(self, name):
        assert not is_linux_x86_64_archive(name)


class TestSelectAsset:
    def test_auto_picks_first_match_in_api_order(self):
        release = _release(
            "tool-darwin-amd64.tar.gz",
            "tool-linux-amd64.tar.gz",
            "tool-linux-x86_64.zip",
        )
        asset = select_asset(release)
        assert asset.id == 2
        assert asset.name == "tool-linux-amd64.tar.gz"

    def test_auto_no_match(self):
        release = _release("tool-darwin-arm64.tar.gz", "checksums.txt")
        with pytest.raises(AssetNotFoundError, match="v1.0"):
            select_asset(release)

    def test_exact_match(self):
        release = _release("tool-linux-amd64.tar.gz", "frankenphp-linux-x86_64-gnu")
        asset = select_asset(release, "frankenphp-linux-x86_64-gnu")
        assert asset.id == 2

    def test_exact_match_is_case_sensitive(self):
        release = _release("Tool-Linux")
        with pytest.raises(AssetNotFoundError):
            select_asset(release, "tool-linux")

    def test_exact_no_match(self):
        with pytest.raises(AssetNotFoundError):
            select_asset(_release("a", "b"), "c")

    def test_missing_id(self):
        release = ReleaseRecord(tag="v1", assets=[AssetRecord(id=None, name="tool-linux-amd64.zip")])
        with pytest.raises(MalformedAssetError, match="ID"):
            select_asset(release)

    def test_empty_release(self):
        with pytest.raises(AssetNotFoundError):
            select_asset(ReleaseRecord(tag="v1"))
