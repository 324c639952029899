"""
Configuration loader — resolves installer settings.

Settings come from three layers, later ones winning:

    defaults  <  YAML config file  <  environment variables

The YAML file is optional (``--config`` or ``GHASSET_CONFIG``).
The build environment supplies ``PLATFORM_CACHE_DIR`` and
``PLATFORM_APP_DIR``; ``GITHUB_TOKEN`` is optional.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from ghasset.core.errors import ConfigError, EnvironmentPreconditionError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GHASSET_CONFIG"

MAX_FILE_SIZE = 1024 * 1024 * 1024  # 1 GiB
DOWNLOAD_TIMEOUT = 300
METADATA_TIMEOUT = 30
RELEASES_PER_PAGE = 5

# Environment variable → settings field
_ENV_FIELDS = {
    "PLATFORM_CACHE_DIR": "cache_dir",
    "PLATFORM_APP_DIR": "app_dir",
    "GITHUB_TOKEN": "github_token",
    "GHASSET_API_URL": "api_url",
    "GHASSET_SCRATCH_DIR": "scratch_dir",
}


class Settings(BaseModel):
    """Resolved installer configuration."""

    cache_dir: Path | None = None
    app_dir: Path | None = None
    github_token: str = Field(default="", repr=False)

    api_url: str = "https://api.github.com"
    max_file_size: int = Field(default=MAX_FILE_SIZE, gt=0)
    download_timeout: float = Field(default=DOWNLOAD_TIMEOUT, gt=0)
    metadata_timeout: float = Field(default=METADATA_TIMEOUT, gt=0)
    releases_per_page: int = Field(default=RELEASES_PER_PAGE, ge=1, le=100)
    scratch_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))

    @property
    def has_token(self) -> bool:
        return bool(self.github_token)

    @property
    def install_dir(self) -> Path:
        """PATH-visible directory binaries are published into."""
        if self.app_dir is None:
            raise EnvironmentPreconditionError("PLATFORM_APP_DIR is not set")
        return self.app_dir / ".global" / "bin"

    def auth_headers(self) -> dict[str, str]:
        if not self.github_token:
            return {}
        return {"Authorization": f"Bearer {self.github_token}"}

    def require_build_environment(self) -> tuple[Path, Path]:
        """Fail unless cache and app directories are configured.

        Returns:
            The ``(cache_dir, app_dir)`` pair.
        """
        if self.cache_dir is None:
            raise EnvironmentPreconditionError(
                "Not running in an Upsun build environment (PLATFORM_CACHE_DIR is not set)."
            )
        if self.app_dir is None:
            raise EnvironmentPreconditionError(
                "Not running in an Upsun build environment (PLATFORM_APP_DIR is not set)."
            )
        return self.cache_dir, self.app_dir


def _read_config_file(path: Path) -> dict:
    """Read a YAML settings file into a plain mapping."""
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The file may wrap everything under a "ghasset" key or be flat
    section = data.get("ghasset", data)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Expected a mapping under 'ghasset' in {path}, got {type(section).__name__}"
        )
    return dict(section)


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load and validate installer settings.

    Args:
        config_path: Explicit YAML settings file. Falls back to
            ``$GHASSET_CONFIG`` when unset; no file at all is fine.
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        Validated Settings.

    Raises:
        ConfigError: If the file is unreadable or a value is invalid.
    """
    env = os.environ if environ is None else environ

    if config_path is None and env.get(CONFIG_ENV_VAR):
        config_path = Path(env[CONFIG_ENV_VAR])

    data: dict = _read_config_file(config_path) if config_path else {}

    for var, field_name in _ENV_FIELDS.items():
        value = env.get(var)
        if value:
            data[field_name] = value

    try:
        settings = Settings.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid installer configuration: {e}") from e

    logger.debug(
        "Settings: cache_dir=%s app_dir=%s token=%s",
        settings.cache_dir,
        settings.app_dir,
        "set" if settings.has_token else "unset",
    )
    return settings
