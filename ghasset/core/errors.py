"""
Error taxonomy for the asset installation pipeline.

Every failure is terminal: the stage that detects it raises one of
these, nothing in the pipeline catches and retries, and the CLI turns
it into a ``❌`` line on stderr plus exit code 1.

The one locally recovered case is checksum verification, which
degrades to a warning when no manifest or no usable digest exists.
"""

from __future__ import annotations


class AssetInstallError(Exception):
    """Base class for every installer failure."""


class ConfigError(AssetInstallError):
    """Raised when the installer configuration is invalid."""


class EnvironmentPreconditionError(AssetInstallError):
    """Not running inside the expected build environment."""


class ValidationError(AssetInstallError):
    """A user-supplied identifier failed the allowlist checks."""


# ── Release metadata ────────────────────────────────────────────


class NetworkError(AssetInstallError):
    """Transport-level failure talking to the release host."""


class ApiError(AssetInstallError):
    """The release host answered with an HTTP error status."""

    def __init__(self, status: int, message: str = "", body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(message or f"GitHub API request failed with status {status}")


class MalformedResponseError(AssetInstallError):
    """The release host answered with something that is not the expected JSON."""


class NeedsAuthError(AssetInstallError):
    """Repository is private or hidden and no token is configured."""


class NotFoundOrForbiddenError(AssetInstallError):
    """Repository is unreachable even with the configured token."""


class ReleaseNotFoundError(AssetInstallError):
    """No release matches the requested (or latest) version."""


# ── Asset selection ─────────────────────────────────────────────


class AssetNotFoundError(AssetInstallError):
    """No asset in the release matches the selection rules."""


class MalformedAssetError(AssetInstallError):
    """The selected asset record lacks an id or a name."""


# ── Download & verification ─────────────────────────────────────


class DownloadError(AssetInstallError):
    """The asset bytes could not be retrieved within the limits."""


class EmptyPayloadError(DownloadError):
    """The download finished but produced zero bytes."""


class ChecksumMismatchError(AssetInstallError):
    """The payload digest differs from the manifest digest."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum verification failed! Expected: {expected}, actual: {actual}"
        )


# ── Extraction ──────────────────────────────────────────────────


class ContentTypeMismatchError(AssetInstallError):
    """Declared content type and sniffed content type disagree."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"File type mismatch: expected {expected}, got {actual}")


class PathTraversalError(AssetInstallError):
    """An archive member would land outside the extraction root."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Security violation: Archive contains dangerous path: {path}")


class ExtractionError(AssetInstallError):
    """The archive could not be read."""


# ── Installation ────────────────────────────────────────────────


class BinaryNotFoundError(AssetInstallError):
    """No file named after the tool exists in the extracted tree."""


class PublishError(AssetInstallError):
    """Copying the cache entry into the install directory failed."""
