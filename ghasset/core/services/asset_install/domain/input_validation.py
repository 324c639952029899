"""
L1 Domain — Input validation (pure).

Validates the repository, version and asset-name arguments before
anything touches the network or the filesystem.  These strings end up
in URLs and cache paths, so the allowlist here is the only thing
standing between user input and path/URL injection.

No I/O, no subprocess.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ghasset.core.errors import ValidationError
from ghasset.core.models.release import RepositoryRef

_REPO_RE = re.compile(r"^[A-Za-z0-9._-]+/[A-Za-z0-9._-]+$")
_TOKEN_RE = re.compile(r"^[A-Za-z0-9._-]+$")

MAX_COMPONENT_LENGTH = 50
MAX_ASSET_NAME_LENGTH = 100


@dataclass(frozen=True)
class ValidatedInputs:
    """Arguments that passed validation; version/asset kept verbatim."""

    ref: RepositoryRef
    version: str = ""
    asset_name: str = ""


def _is_safe_token(value: str) -> bool:
    # fullmatch: "$" would let a trailing newline through.
    # "." and ".." are path components, not names.
    return bool(_TOKEN_RE.fullmatch(value)) and value.strip(".") != ""


def validate_version(version: str, *, source: str = "") -> str:
    """Check a version/tag string against the identifier allowlist.

    Args:
        version: Tag name to check.
        source: Optional origin label for the error message
            (e.g. ``"from API"``).

    Returns:
        The version, unchanged.

    Raises:
        ValidationError: If it contains anything outside ``[A-Za-z0-9._-]``.
    """
    if not _is_safe_token(version):
        where = f" {source}" if source else ""
        raise ValidationError(
            f"Invalid version format{where}: {version!r}. Version must contain "
            "only alphanumeric characters, dots, underscores, and hyphens"
        )
    return version


def validate_inputs(
    repo: str,
    version: str | None = None,
    asset_name: str | None = None,
) -> ValidatedInputs:
    """Validate the raw CLI arguments.

    Args:
        repo: ``org/name`` repository identifier.
        version: Optional release tag. Empty means "latest".
        asset_name: Optional exact asset filename. Empty means auto-detect.

    Returns:
        ValidatedInputs with the parsed RepositoryRef.

    Raises:
        ValidationError: On the first rule that fails.
    """
    repo = repo or ""
    version = version or ""
    asset_name = asset_name or ""

    if not _REPO_RE.fullmatch(repo) or not all(_is_safe_token(p) for p in repo.split("/")):
        raise ValidationError(
            f"Invalid repository format: {repo!r}. Expected format: org/repo "
            "(alphanumeric, dots, underscores, hyphens only)"
        )

    if version:
        validate_version(version)

    if asset_name and not _is_safe_token(asset_name):
        raise ValidationError(
            f"Invalid asset name format: {asset_name!r}. Asset name must contain "
            "only alphanumeric characters, dots, underscores, and hyphens"
        )

    org, name = repo.split("/", 1)

    if len(org) > MAX_COMPONENT_LENGTH or len(name) > MAX_COMPONENT_LENGTH:
        raise ValidationError(
            f"Organization or repository name too long (max {MAX_COMPONENT_LENGTH} characters each)"
        )

    if len(asset_name) > MAX_ASSET_NAME_LENGTH:
        raise ValidationError(
            f"Asset name too long (max {MAX_ASSET_NAME_LENGTH} characters)"
        )

    return ValidatedInputs(
        ref=RepositoryRef(org=org, name=name),
        version=version,
        asset_name=asset_name,
    )
