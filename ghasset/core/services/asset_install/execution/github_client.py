"""
L4 Execution — GitHub release metadata client.

Lists recent releases, resolves the requested version, checks
repository visibility and fetches checksum manifests.

One client instance corresponds to one installer run: the release
list is fetched once per repository and reused for version
resolution, asset selection and manifest lookup.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ghasset.core.config.loader import Settings
from ghasset.core.errors import (
    ApiError,
    DownloadError,
    MalformedResponseError,
    NeedsAuthError,
    NetworkError,
    NotFoundOrForbiddenError,
)
from ghasset.core.models.release import (
    AssetRecord,
    ReleaseRecord,
    RepositoryRef,
    RepositoryVisibility,
)
from ghasset.core.services.asset_install.execution.http import (
    GITHUB_JSON,
    build_opener,
    http_error_body,
    make_request,
    read_limited,
)

logger = logging.getLogger(__name__)

# API responses and manifests are small; anything bigger is suspicious
MAX_METADATA_SIZE = 10 * 1024 * 1024


class GitHubReleaseClient:
    """Release metadata access for a single installer run.

    Args:
        settings: Resolved installer settings (API URL, token, timeouts).
        opener: ``urllib`` opener; defaults to one that strips the
            token on cross-host redirects.
    """

    def __init__(
        self,
        settings: Settings,
        opener: urllib.request.OpenerDirector | None = None,
    ) -> None:
        self.settings = settings
        self._opener = opener or build_opener()
        self._releases: dict[RepositoryRef, list[ReleaseRecord]] = {}

    # ── Transport ───────────────────────────────────────────────

    def _get(self, url: str, *, accept: str = GITHUB_JSON) -> tuple[int, bytes]:
        """GET ``url``; HTTP error statuses are returned, not raised."""
        req = make_request(url, accept=accept, auth=self.settings.auth_headers())
        logger.debug("GET %s", url)
        try:
            with self._opener.open(req, timeout=self.settings.metadata_timeout) as resp:
                return resp.getcode(), read_limited(resp, MAX_METADATA_SIZE)
        except urllib.error.HTTPError as exc:
            return exc.code, http_error_body(exc).encode("utf-8")
        except (urllib.error.URLError, OSError) as exc:
            raise NetworkError(f"Failed to reach {url}: {exc}") from exc

    def _repo_url(self, ref: RepositoryRef) -> str:
        return f"{self.settings.api_url.rstrip('/')}/repos/{ref.org}/{ref.name}"

    # ── Releases ────────────────────────────────────────────────

    def fetch_releases(self, ref: RepositoryRef) -> list[ReleaseRecord]:
        """Return the most recent releases of ``ref``, newest first.

        The first call per repository hits the API; later calls return
        the same list.

        Raises:
            NetworkError: Transport failure.
            ApiError: HTTP status >= 400.
            MalformedResponseError: Body is not a JSON list of releases.
        """
        if ref in self._releases:
            return self._releases[ref]

        url = f"{self._repo_url(ref)}/releases?per_page={self.settings.releases_per_page}"
        status, body = self._get(url)

        if status >= 400:
            raise ApiError(status, body=body.decode("utf-8", errors="replace"))

        try:
            data: Any = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedResponseError("Invalid JSON response from GitHub API") from exc

        if not isinstance(data, list):
            raise MalformedResponseError(
                f"Expected a list of releases from GitHub API, got {type(data).__name__}"
            )

        try:
            releases = [ReleaseRecord.model_validate(item) for item in data]
        except PydanticValidationError as exc:
            raise MalformedResponseError(f"Unexpected release record from GitHub API: {exc}") from exc

        logger.info("Fetched %d releases for %s", len(releases), ref)
        self._releases[ref] = releases
        return releases

    @staticmethod
    def resolve_latest(releases: list[ReleaseRecord]) -> str:
        """Tag of the most recent release, or ``""`` when there is none."""
        return releases[0].tag if releases else ""

    @staticmethod
    def resolve_exists(releases: list[ReleaseRecord], tag: str) -> bool:
        """True if a release carries exactly ``tag`` (case-sensitive)."""
        return any(r.tag == tag for r in releases)

    @staticmethod
    def find_release(releases: list[ReleaseRecord], tag: str) -> ReleaseRecord | None:
        for release in releases:
            if release.tag == tag:
                return release
        return None

    # ── Repository access ───────────────────────────────────────

    def check_auth(self, ref: RepositoryRef) -> RepositoryVisibility:
        """Check that ``ref`` is reachable with the configured credentials.

        Raises:
            NeedsAuthError: Private repository (or 404) and no token.
            NotFoundOrForbiddenError: 404 although a token is set.
            ApiError: Any other status >= 400.
        """
        status, body = self._get(self._repo_url(ref))

        is_private = False
        try:
            data = json.loads(body) if body else {}
            if isinstance(data, dict):
                is_private = data.get("private") is True
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Repository response for %s is not JSON", ref)

        if is_private and not self.settings.has_token:
            raise NeedsAuthError(
                f"Repository {ref} is private. "
                "Please export a valid GITHUB_TOKEN to access private repositories."
            )

        if status == 404:
            if not self.settings.has_token:
                raise NeedsAuthError(
                    f"Repository {ref} not accessible (404). It might be a private "
                    "repository. Please set a valid GITHUB_TOKEN environment variable."
                )
            raise NotFoundOrForbiddenError(
                f"Repository {ref} not found or inaccessible. "
                "Make sure the GITHUB_TOKEN has the correct permissions."
            )

        if status >= 400:
            text = body.decode("utf-8", errors="replace")
            raise ApiError(
                status,
                f"GitHub API request failed with status {status}: {text.strip()[:200]}",
                body=text,
            )

        return RepositoryVisibility(is_private=is_private, status=status)

    # ── Checksum manifests ──────────────────────────────────────

    def fetch_manifest(self, asset: AssetRecord) -> str:
        """Download a checksum manifest asset as text.

        Raises:
            NetworkError: Transport failure.
            DownloadError: No URL, HTTP error, or oversized manifest.
        """
        if not asset.download_url:
            raise DownloadError(f"Checksum asset {asset.name} has no download URL")

        status, body = self._get(asset.download_url, accept="*/*")
        if status >= 400:
            raise DownloadError(f"Failed to download {asset.name} (HTTP {status})")
        return body.decode("utf-8", errors="replace")
