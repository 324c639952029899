"""
L1 Domain — Download helpers (pure).

Size formatting and filename sanitisation.
No I/O, no subprocess.
"""

from __future__ import annotations

import posixpath
import re

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _fmt_size(n: int | float) -> str:
    """Format byte count to human-readable string."""
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} TB"


def sanitize_filename(name: str) -> str:
    """Strip directory components and anything outside ``[A-Za-z0-9._-]``.

    >>> sanitize_filename("../../bin/to ol")
    'tool'
    """
    base = posixpath.basename(name.replace("\\", "/"))
    return _UNSAFE_FILENAME_CHARS.sub("", base)
