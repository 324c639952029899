"""
L1 Domain — Pure business logic.

No I/O, no subprocess, no network. Every function here operates
on inputs and returns outputs without side effects.
"""

from ghasset.core.services.asset_install.domain.asset_selection import (  # noqa: F401
    is_linux_x86_64_archive,
    select_asset,
)
from ghasset.core.services.asset_install.domain.checksum import (  # noqa: F401
    digests_match,
    extract_expected_digest,
    find_checksum_asset,
)
from ghasset.core.services.asset_install.domain.content_type import (  # noqa: F401
    ensure_type_compatible,
    sniff_mime_type,
)
from ghasset.core.services.asset_install.domain.download_helpers import (  # noqa: F401
    _fmt_size,
    sanitize_filename,
)
from ghasset.core.services.asset_install.domain.input_validation import (  # noqa: F401
    ValidatedInputs,
    validate_inputs,
    validate_version,
)
