"""
Tests for checksum manifests and digest verification.
"""

from __future__ import annotations

import hashlib
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest

from ghasset.core.errors import ChecksumMismatchError
from ghasset.core.models import AssetRecord, ChecksumStatus, DigestAlgorithm, ReleaseRecord
from ghasset.core.services.asset_install.domain.checksum import (
    extract_expected_digest,
    find_checksum_asset,
)
from ghasset.core.services.asset_install.execution.download import verify_checksum

PAYLOAD = b"not really a tarball\n"
SHA256 = hashlib.sha256(PAYLOAD).hexdigest()
SHA1 = hashlib.sha1(PAYLOAD).hexdigest()
MD5 = hashlib.md5(PAYLOAD).hexdigest()


@pytest.fixture
def payload_file(tmp_path: Path) -> Path:
    path = tmp_path / "tool-asset"
    path.write_bytes(PAYLOAD)
    return path


class TestFindChecksumAsset:
    @pytest.mark.parametrize(
        "name",
        ["checksums.txt", "SHA256SUMS", "tool.sha1", "tool.MD5", "tool_1.0_sums.txt"],
    )
    def test_recognised_names(self, name):
        release = ReleaseRecord(
            tag="v1",
            assets=[AssetRecord(id=1, name="tool-linux-amd64.tar.gz"), AssetRecord(id=2, name=name)],
        )
        found = find_checksum_asset(release)
        assert found is not None and found.id == 2

    def test_first_manifest_wins(self):
        release = ReleaseRecord(
            tag="v1",
            assets=[AssetRecord(id=1, name="sha256sums"), AssetRecord(id=2, name="checksums.txt")],
        )
        assert find_checksum_asset(release).id == 1

    def test_absent(self):
        release = ReleaseRecord(tag="v1", assets=[AssetRecord(id=1, name="tool-linux-amd64.tar.gz")])
        assert find_checksum_asset(release) is None


class TestExtractExpectedDigest:
    MANIFEST = textwrap.dedent(f"""\
        {"a" * 64}  tool-darwin-amd64.tar.gz
        {SHA256}  tool-linux-amd64.tar.gz
        {"b" * 64}  tool-linux-amd64.tar.gz.sbom
    """)

    def test_verbatim_match(self):
        assert extract_expected_digest(self.MANIFEST, "tool-linux-amd64.tar.gz") == SHA256

    def test_first_matching_line_wins(self):
        # the .sbom line also contains the name, but comes later
        assert extract_expected_digest(self.MANIFEST, "tool-linux-amd64.tar.gz") == SHA256

    def test_substring_match_is_lenient(self):
        # "tool-darwin" is a substring of the first line only
        assert extract_expected_digest(self.MANIFEST, "tool-darwin") == "a" * 64

    def test_basename_fallback(self):
        manifest = f"{SHA256}  tool-linux-amd64.tar.gz\n"
        assert extract_expected_digest(manifest, "dist/tool-linux-amd64.tar.gz") == SHA256

    def test_no_match(self):
        assert extract_expected_digest(self.MANIFEST, "other.zip") == ""

    def test_empty_manifest(self):
        assert extract_expected_digest("", "tool.zip") == ""

    def test_binary_marker_line(self):
        manifest = f"{SHA256} *tool-linux-amd64.tar.gz\n"
        assert extract_expected_digest(manifest, "tool-linux-amd64.tar.gz") == SHA256


class TestVerifyChecksum:
    def test_sha256(self, payload_file):
        result = verify_checksum(payload_file, SHA256)
        assert result.status == ChecksumStatus.VERIFIED
        assert result.algorithm == DigestAlgorithm.SHA256
        assert result.actual == SHA256

    def test_md5_for_32_chars(self, payload_file):
        result = verify_checksum(payload_file, MD5)
        assert result.verified
        assert result.algorithm == DigestAlgorithm.MD5

    def test_sha1_for_40_chars(self, payload_file):
        result = verify_checksum(payload_file, SHA1)
        assert result.algorithm == DigestAlgorithm.SHA1

    def test_uppercase_digest_accepted(self, payload_file):
        assert verify_checksum(payload_file, SHA256.upper()).verified

    def test_mismatch_reports_both_values(self, payload_file):
        wrong = "0" * 64
        with pytest.raises(ChecksumMismatchError) as excinfo:
            verify_checksum(payload_file, wrong)
        assert excinfo.value.expected == wrong
        assert excinfo.value.actual == SHA256
        assert wrong in str(excinfo.value)
        assert SHA256 in str(excinfo.value)

    def test_md5_mismatch(self, payload_file):
        with pytest.raises(ChecksumMismatchError):
            verify_checksum(payload_file, "f" * 32)

    def test_empty_digest_skips(self, payload_file):
        result = verify_checksum(payload_file, "")
        assert result.status == ChecksumStatus.SKIPPED
        assert "No checksum" in result.reason

    def test_unknown_length_skips(self, payload_file):
        result = verify_checksum(payload_file, "abc123")
        assert result.status == ChecksumStatus.SKIPPED
        assert "length: 6" in result.reason

    def test_unavailable_algorithm_skips(self, payload_file):
        with patch("hashlib.new", side_effect=ValueError("unsupported hash type md5")):
            result = verify_checksum(payload_file, MD5)
        assert result.status == ChecksumStatus.SKIPPED
        assert result.algorithm == DigestAlgorithm.MD5
