"""
L4 Execution — Archive extraction.

Checks the declared content type against the sniffed one, unpacks
zip and tar-family archives into a scratch directory, and refuses
anything that would land outside it.

Archives are scanned before extraction: a single member with an
absolute path, a ``..`` component, or a link pointing out of the
root aborts the whole extraction with nothing written.  After
extraction every file is checked again against the root.
"""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
import tarfile
import zipfile
import zlib
from pathlib import Path

from ghasset.core.errors import ExtractionError, PathTraversalError
from ghasset.core.models.payload import ArchiveKind, DownloadedPayload, ExtractedLayout
from ghasset.core.services.asset_install.domain.content_type import ensure_type_compatible
from ghasset.core.services.asset_install.domain.download_helpers import sanitize_filename

logger = logging.getLogger(__name__)


def _is_escaping(name: str) -> bool:
    """True for member names that are absolute or climb above the root."""
    normalized = name.replace("\\", "/")
    if normalized.startswith("/") or (len(normalized) > 1 and normalized[1] == ":"):
        return True
    return ".." in normalized.split("/")


def _check_tar_member(member: tarfile.TarInfo) -> None:
    if _is_escaping(member.name):
        raise PathTraversalError(member.name)

    if member.issym():
        target = member.linkname
        if target.startswith("/"):
            raise PathTraversalError(f"{member.name} -> {target}")
        resolved = posixpath.normpath(posixpath.join(posixpath.dirname(member.name), target))
        if resolved == ".." or resolved.startswith("../"):
            raise PathTraversalError(f"{member.name} -> {target}")
    elif member.islnk():
        if _is_escaping(member.linkname):
            raise PathTraversalError(f"{member.name} -> {member.linkname}")


def _safe_tar_members(tf: tarfile.TarFile) -> list[tarfile.TarInfo]:
    members = []
    for member in tf.getmembers():
        _check_tar_member(member)
        if member.isfile() or member.isdir() or member.issym() or member.islnk():
            members.append(member)
        else:
            logger.debug("Skipping special archive member %s", member.name)
    return members


def _extract_tar(archive: Path, dest_dir: Path) -> None:
    try:
        with tarfile.open(archive, "r:*") as tf:
            members = _safe_tar_members(tf)
            tf.extractall(dest_dir, members=members, filter="data")
    except tarfile.FilterError as exc:
        name = exc.tarinfo.name if exc.tarinfo is not None else str(exc)
        raise PathTraversalError(name) from exc
    except (tarfile.TarError, EOFError, zlib.error, OSError) as exc:
        raise ExtractionError(f"Failed to extract tar.gz archive: {exc}") from exc


def _extract_zip(archive: Path, dest_dir: Path) -> None:
    try:
        with zipfile.ZipFile(archive, "r") as zf:
            for name in zf.namelist():
                if _is_escaping(name):
                    raise PathTraversalError(name)
            zf.extractall(dest_dir)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, zlib.error, OSError) as exc:
        raise ExtractionError(f"Failed to extract zip archive: {exc}") from exc


def validate_extracted_paths(root: Path) -> list[Path]:
    """Check that every file under ``root`` really resolves inside it.

    Symlinks are followed, so a link pointing outside the root is
    caught even though the link itself sits inside.

    Returns:
        All files found (regular files and symlinks), in walk order.

    Raises:
        PathTraversalError: On the first escaping path.
    """
    real_root = os.path.realpath(root)
    found: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        linked_dirs = [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
        for name in sorted(filenames) + linked_dirs:
            path = os.path.join(dirpath, name)
            rel = os.path.relpath(os.path.realpath(path), real_root)
            if rel == ".." or rel.startswith("../") or "/../" in rel or rel.startswith("/"):
                raise PathTraversalError(os.path.relpath(path, root))
            found.append(Path(path))

    return found


def extract_if_archive(
    payload: DownloadedPayload,
    declared_content_type: str | None,
    dest_dir: Path,
    tool_name: str,
) -> ExtractedLayout:
    """Unpack ``payload`` into ``dest_dir`` according to its declared type.

    Zip and tar-family payloads are type-checked and extracted; any
    other declared type is taken to be the binary itself and moved
    into ``dest_dir`` under the sanitised tool name.  The payload file
    is consumed either way.

    Raises:
        ContentTypeMismatchError: Sniffed type contradicts the declared one.
        PathTraversalError: A member escapes ``dest_dir``.
        ExtractionError: The archive is unreadable.
    """
    declared = declared_content_type or ""
    kind = ArchiveKind.from_content_type(declared)

    ensure_type_compatible(kind, declared, payload.sniffed_type)

    dest_dir.mkdir(parents=True, exist_ok=True)

    if kind == ArchiveKind.ZIP:
        _extract_zip(payload.path, dest_dir)
        payload.path.unlink(missing_ok=True)
    elif kind == ArchiveKind.TAR_GZ:
        _extract_tar(payload.path, dest_dir)
        payload.path.unlink(missing_ok=True)
    else:
        logger.info("No extraction needed for %s file", declared or "untyped")
        target_name = sanitize_filename(tool_name)
        if not target_name:
            raise ExtractionError(f"Cannot derive a safe filename from {tool_name!r}")
        try:
            shutil.move(str(payload.path), str(dest_dir / target_name))
        except OSError as exc:
            raise ExtractionError(f"Failed to move binary file: {exc}") from exc

    files = validate_extracted_paths(dest_dir)
    logger.info("Extracted %d files into %s", len(files), dest_dir)
    return ExtractedLayout(root=dest_dir, kind=kind, files=files)
