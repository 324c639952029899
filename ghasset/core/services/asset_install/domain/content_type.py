"""
L1 Domain — Content sniffing and type compatibility (pure).

The server-declared ``content_type`` of an asset is never trusted on
its own: the first bytes of the payload are inspected and the result
has to agree with what the release claims before anything is
extracted.

No I/O, no subprocess.
"""

from __future__ import annotations

from ghasset.core.errors import ContentTypeMismatchError
from ghasset.core.models.payload import ArchiveKind

# Bytes needed to recognise every signature below (tar magic sits at 257)
SNIFF_BYTES = 512

ZIP = "application/zip"
GZIP = "application/gzip"
TAR = "application/x-tar"
BZIP2 = "application/x-bzip2"
XZ = "application/x-xz"
ELF_EXEC = "application/x-executable"
ELF_PIE = "application/x-pie-executable"
SHELL_SCRIPT = "text/x-shellscript"
TEXT = "text/plain"
BINARY = "application/octet-stream"
EMPTY = "application/x-empty"

# Sniffed types accepted for each archive kind
COMPATIBLE_TYPES: dict[ArchiveKind, frozenset[str]] = {
    ArchiveKind.ZIP: frozenset({ZIP}),
    ArchiveKind.TAR_GZ: frozenset({GZIP, "application/x-gzip", TAR}),
}

_ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")

# ELF e_type values
_ET_EXEC = 2
_ET_DYN = 3


def _sniff_elf(header: bytes) -> str:
    if len(header) < 18:
        return ELF_EXEC
    # EI_DATA: 1 = little endian, 2 = big endian
    byteorder = "big" if header[5] == 2 else "little"
    e_type = int.from_bytes(header[16:18], byteorder)
    if e_type == _ET_DYN:
        # PIE executables carry an interpreter; shared libs don't.  Without
        # parsing program headers, report the modern default.
        return ELF_PIE
    return ELF_EXEC


def _looks_like_text(header: bytes) -> bool:
    if b"\x00" in header:
        return False
    try:
        header.decode("utf-8")
    except UnicodeDecodeError:
        # A multi-byte sequence may be cut at the sniff boundary
        try:
            header[:-3].decode("utf-8")
        except UnicodeDecodeError:
            return False
    return True


def sniff_mime_type(header: bytes) -> str:
    """Identify a MIME type from the leading bytes of a file.

    Args:
        header: At least the first ``SNIFF_BYTES`` bytes (fewer for
            small files).

    Returns:
        A MIME type string in the style of ``file --mime-type``.
    """
    if not header:
        return EMPTY
    if header.startswith(_ZIP_MAGICS):
        return ZIP
    if header.startswith(b"\x1f\x8b"):
        return GZIP
    if header.startswith(b"BZh"):
        return BZIP2
    if header.startswith(b"\xfd7zXZ\x00"):
        return XZ
    if header.startswith(b"\x7fELF"):
        return _sniff_elf(header)
    if header[257:262] == b"ustar":
        return TAR
    if header.startswith(b"#!"):
        return SHELL_SCRIPT
    if _looks_like_text(header):
        return TEXT
    return BINARY


def ensure_type_compatible(kind: ArchiveKind, declared: str, sniffed: str) -> None:
    """Reject a payload whose sniffed type contradicts its declared kind.

    ``ArchiveKind.OTHER`` payloads are assumed to be the raw binary and
    are not checked.

    Raises:
        ContentTypeMismatchError: On a zip/tar-family mismatch.
    """
    if kind == ArchiveKind.OTHER:
        return

    if sniffed not in COMPATIBLE_TYPES[kind]:
        expected = declared if kind == ArchiveKind.ZIP else "gzip/tar archive"
        raise ContentTypeMismatchError(expected, sniffed)
