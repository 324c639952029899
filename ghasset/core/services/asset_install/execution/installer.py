"""
L4 Execution — Cache population and PATH publishing.

Cache layout::

    <cache_root>/<tool>/<version>/<files...>
    <cache_root>/<tool>/<version>/<asset_name>/<files...>

The cache entry is the durable copy; the install directory is
rebuilt from it on every run.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

from ghasset.core.errors import BinaryNotFoundError, PublishError

logger = logging.getLogger(__name__)

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def cache_dir_for(
    cache_root: Path,
    tool: str,
    version: str,
    asset_name: str | None = None,
) -> Path:
    """Version-keyed cache directory for ``tool``."""
    path = cache_root / tool / version
    return path / asset_name if asset_name else path


def is_cached(
    cache_root: Path,
    tool: str,
    version: str,
    asset_name: str | None = None,
) -> bool:
    """True when the cached binary for this (tool, version, asset) exists."""
    return (cache_dir_for(cache_root, tool, version, asset_name) / tool).is_file()


def locate_binary(root: Path, tool: str) -> Path:
    """Find the first regular file named exactly ``tool`` under ``root``.

    The walk is sorted so the result does not depend on filesystem
    ordering.

    Raises:
        BinaryNotFoundError: If no such file exists.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        if tool in filenames:
            candidate = Path(dirpath) / tool
            if candidate.is_file() and not candidate.is_symlink():
                logger.info("Found binary: %s", candidate.relative_to(root))
                return candidate

    available = sorted(p.name for p in root.rglob("*") if p.is_file())[:10]
    raise BinaryNotFoundError(
        f"Can't find {tool} in the extracted archive"
        + (f" (files: {', '.join(available)})" if available else "")
    )


def populate_cache(
    binary_dir: Path,
    tool: str,
    version: str,
    cache_root: Path,
    asset_name: str | None = None,
) -> Path:
    """Copy the directory holding the binary into the cache.

    Everything next to the binary (helper executables, shared data) is
    cached with it.  The source directory is removed afterwards.

    Returns:
        The cache directory.

    Raises:
        PublishError: If the copy fails.
    """
    dest = cache_dir_for(cache_root, tool, version, asset_name)

    if binary_dir.resolve() == dest.resolve():
        return dest

    logger.info("Caching %s %s into %s", tool, version, dest)
    try:
        dest.mkdir(parents=True, exist_ok=True)
        shutil.copytree(binary_dir, dest, symlinks=True, dirs_exist_ok=True)
    except (OSError, shutil.Error) as exc:
        raise PublishError(f"Failed to update cache {dest}: {exc}") from exc

    shutil.rmtree(binary_dir, ignore_errors=True)
    return dest


def _top_level_entries(directory: Path) -> list[Path]:
    return sorted(
        p for p in directory.iterdir()
        if p.is_symlink() or p.is_file()
    )


def publish(cache_dir: Path, install_dir: Path) -> list[Path]:
    """Copy a cache entry's top-level files into ``install_dir``.

    Only files and symlinks directly inside ``cache_dir`` are copied
    (symlinks are dereferenced).  Afterwards every file in
    ``install_dir`` is made executable.

    Returns:
        The published paths, in name order.

    Raises:
        PublishError: Missing cache dir, a failed copy or chmod, or
            nothing to copy.
    """
    if not cache_dir.is_dir():
        raise PublishError(f"Source directory does not exist: {cache_dir}")

    try:
        install_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PublishError(f"Failed to create destination directory: {install_dir}") from exc

    published: list[Path] = []
    for src in _top_level_entries(cache_dir):
        target = install_dir / src.name
        try:
            if target.is_symlink():
                target.unlink()
            shutil.copy2(src, target)
        except OSError as exc:
            raise PublishError(f"Failed to copy {src} to {install_dir}: {exc}") from exc
        published.append(target)

    if not published:
        raise PublishError(f"No files found to copy in {cache_dir}")

    for entry in _top_level_entries(install_dir):
        try:
            mode = entry.stat().st_mode
            entry.chmod(mode | _EXEC_BITS)
        except OSError as exc:
            raise PublishError(f"Failed to make {entry} executable: {exc}") from exc

    logger.info("Published %d files to %s", len(published), install_dir)
    return published
