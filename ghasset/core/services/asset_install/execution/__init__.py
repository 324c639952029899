"""
L4 Execution — ``__init__.py`` re-exports all execution functions.

These functions touch the outside world: HTTP requests to the release
host, scratch-directory extraction, cache and PATH writes.
"""

from ghasset.core.services.asset_install.execution.download import (  # noqa: F401
    SecureDownloader,
    sniff_file,
    verify_checksum,
)
from ghasset.core.services.asset_install.execution.extraction import (  # noqa: F401
    extract_if_archive,
    validate_extracted_paths,
)
from ghasset.core.services.asset_install.execution.github_client import (  # noqa: F401
    GitHubReleaseClient,
)
from ghasset.core.services.asset_install.execution.installer import (  # noqa: F401
    cache_dir_for,
    is_cached,
    locate_binary,
    populate_cache,
    publish,
)
