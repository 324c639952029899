"""
L5 Orchestration — install a GitHub release asset end to end.

Validate → environment → repository access → version → cache check
→ asset → checksum manifest → download → verify → extract → locate
→ cache → publish.

Every stage raises on failure and nothing is retried.  The only
scratch state is one temporary directory per run, removed whether
the run succeeds or not.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ghasset.core.config.loader import Settings, load_settings
from ghasset.core.errors import (
    DownloadError,
    NetworkError,
    ReleaseNotFoundError,
)
from ghasset.core.models.payload import ChecksumResult
from ghasset.core.models.release import AssetRecord, ReleaseRecord, RepositoryRef
from ghasset.core.services.asset_install.domain.asset_selection import select_asset
from ghasset.core.services.asset_install.domain.checksum import (
    extract_expected_digest,
    find_checksum_asset,
)
from ghasset.core.services.asset_install.domain.input_validation import (
    validate_inputs,
    validate_version,
)
from ghasset.core.services.asset_install.execution.download import (
    SecureDownloader,
    verify_checksum,
)
from ghasset.core.services.asset_install.execution.extraction import extract_if_archive
from ghasset.core.services.asset_install.execution.github_client import GitHubReleaseClient
from ghasset.core.services.asset_install.execution.installer import (
    cache_dir_for,
    is_cached,
    locate_binary,
    populate_cache,
    publish,
)

logger = logging.getLogger(__name__)

Progress = Callable[[str], None]


@dataclass
class InstallResult:
    """Outcome of a successful installation."""

    repo: str
    tool: str
    version: str
    asset_name: str = ""
    asset_id: int | None = None
    cache_dir: Path | None = None
    install_dir: Path | None = None
    published: list[Path] = field(default_factory=list)
    cache_hit: bool = False
    is_private: bool = False
    sniffed_type: str = ""
    checksum: ChecksumResult | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "repo": self.repo,
            "tool": self.tool,
            "version": self.version,
            "asset_name": self.asset_name,
            "asset_id": self.asset_id,
            "cache_dir": str(self.cache_dir) if self.cache_dir else None,
            "install_dir": str(self.install_dir) if self.install_dir else None,
            "published": [str(p) for p in self.published],
            "cache_hit": self.cache_hit,
            "private": self.is_private,
            "sniffed_type": self.sniffed_type,
            "checksum": self.checksum.to_dict() if self.checksum else None,
            "warnings": self.warnings,
        }


def _warn(result: InstallResult, say: Progress, message: str) -> None:
    result.warnings.append(message)
    say(f"⚠️  {message}")


def _resolve_version(
    client: GitHubReleaseClient,
    ref: RepositoryRef,
    requested: str,
    say: Progress,
) -> tuple[str, list[ReleaseRecord]]:
    releases = client.fetch_releases(ref)

    if not requested:
        say("Finding latest version...")
        version = client.resolve_latest(releases)
        if not version:
            raise ReleaseNotFoundError(
                f"No valid release version found for {ref}, aborting installation."
            )
        validate_version(version, source="from API")
        say(f"Latest version: {version}")
        return version, releases

    if not client.resolve_exists(releases, requested):
        raise ReleaseNotFoundError(
            f"The version specified for {ref} ({requested}) was not found. "
            f"Please check available releases on https://github.com/{ref}/releases"
        )
    say(f"Version specified for {ref}: {requested}")
    return requested, releases


def _expected_digest(
    client: GitHubReleaseClient,
    release: ReleaseRecord,
    asset: AssetRecord,
    result: InstallResult,
    say: Progress,
) -> str:
    """Look up the manifest digest for ``asset``; ``""`` when unavailable."""
    manifest_asset = find_checksum_asset(release)
    if manifest_asset is None:
        _warn(result, say, f"No checksum found for {asset.name}")
        return ""

    try:
        manifest = client.fetch_manifest(manifest_asset)
    except (NetworkError, DownloadError) as exc:
        logger.warning("Could not fetch checksum manifest %s: %s", manifest_asset.name, exc)
        _warn(result, say, f"No checksum found for {asset.name}")
        return ""

    digest = extract_expected_digest(manifest, asset.name or "")
    if digest:
        say(f"Found checksum: {digest}")
    else:
        _warn(result, say, f"No checksum found for {asset.name} in {manifest_asset.name}")
    return digest


def _download_and_cache(
    *,
    settings: Settings,
    cache_root: Path,
    client: GitHubReleaseClient,
    downloader: SecureDownloader,
    ref: RepositoryRef,
    releases: list[ReleaseRecord],
    asset_name: str,
    result: InstallResult,
    say: Progress,
) -> Path:
    tool, version = ref.name, result.version

    release = client.find_release(releases, version)
    if release is None:
        raise ReleaseNotFoundError(f"Release {version} disappeared from the release list of {ref}")

    say(f"Downloading {tool} binary (version {version})...")
    if not asset_name:
        say("Auto-detecting linux/x86_64 asset...")
    asset = select_asset(release, asset_name)
    result.asset_name = asset.name or ""
    result.asset_id = asset.id
    say(f"Found asset: {asset.name}")

    expected = _expected_digest(client, release, asset, result, say)

    settings.scratch_dir.mkdir(parents=True, exist_ok=True)
    scratch = Path(tempfile.mkdtemp(prefix=f"ghasset-{tool}-", dir=settings.scratch_dir))
    try:
        payload = downloader.download(ref, asset, scratch / "download" / f"{tool}-asset")
        result.sniffed_type = payload.sniffed_type
        say(f"Downloaded file type: {payload.sniffed_type}")

        result.checksum = verify_checksum(payload.path, expected)
        if result.checksum.verified:
            say("Checksum verification passed")
        elif expected:
            _warn(result, say, result.checksum.reason)

        layout = extract_if_archive(payload, asset.content_type, scratch / "extract", tool)
        say("Download complete")

        say(f"Caching {tool} binary...")
        binary = locate_binary(layout.root, tool)
        cache_dir = populate_cache(binary.parent, tool, version, cache_root, asset_name)
        say("Cache updated")
        return cache_dir
    finally:
        shutil.rmtree(scratch, ignore_errors=True)


def install_asset(
    repo: str,
    version: str | None = None,
    asset_name: str | None = None,
    *,
    settings: Settings | None = None,
    client: GitHubReleaseClient | None = None,
    downloader: SecureDownloader | None = None,
    progress: Progress | None = None,
) -> InstallResult:
    """Install a release asset of ``repo`` into the cache and PATH.

    Args:
        repo: ``org/name`` GitHub repository. ``name`` is the tool name
            and the name of the binary looked up inside the asset.
        version: Release tag. Empty means the most recent release.
        asset_name: Exact asset filename. Empty means auto-detect a
            Linux x86-64 archive.
        settings: Installer settings (default: ``load_settings()``).
        client: Release client (default: built from settings).
        downloader: Asset downloader (default: built from settings).
        progress: Callback for user-facing progress lines.

    Returns:
        InstallResult describing what was installed.

    Raises:
        AssetInstallError: Any failing stage; see ``ghasset.core.errors``.
    """
    say: Progress = progress or logger.info

    inputs = validate_inputs(repo, version, asset_name)
    ref = inputs.ref

    settings = settings or load_settings()
    cache_root, _ = settings.require_build_environment()

    client = client or GitHubReleaseClient(settings)
    downloader = downloader or SecureDownloader(settings)

    visibility = client.check_auth(ref)
    if visibility.is_private:
        say("🔒 This repository is private.")

    resolved, releases = _resolve_version(client, ref, inputs.version, say)

    result = InstallResult(
        repo=ref.slug,
        tool=ref.name,
        version=resolved,
        asset_name=inputs.asset_name,
        install_dir=settings.install_dir,
        is_private=visibility.is_private,
    )

    if is_cached(cache_root, ref.name, resolved, inputs.asset_name):
        say(f"Found {ref.name} {resolved} in cache")
        result.cache_hit = True
        result.cache_dir = cache_dir_for(cache_root, ref.name, resolved, inputs.asset_name)
    else:
        result.cache_dir = _download_and_cache(
            settings=settings,
            cache_root=cache_root,
            client=client,
            downloader=downloader,
            ref=ref,
            releases=releases,
            asset_name=inputs.asset_name,
            result=result,
            say=say,
        )

    say(f"Copying {ref.name} to the PATH...")
    result.published = publish(result.cache_dir, settings.install_dir)
    return result
