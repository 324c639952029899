"""
GitHub release asset installation — package re-exports.

    from ghasset.core.services.asset_install import install_asset

Each symbol lives in its single-responsibility module inside the
appropriate layer (domain → execution → orchestration).
"""

# ── L1: Domain ──
from ghasset.core.services.asset_install.domain.asset_selection import (  # noqa: F401
    select_asset,
)
from ghasset.core.services.asset_install.domain.input_validation import (  # noqa: F401
    validate_inputs,
)

# ── L4: Execution ──
from ghasset.core.services.asset_install.execution.github_client import (  # noqa: F401
    GitHubReleaseClient,
)
from ghasset.core.services.asset_install.execution.download import (  # noqa: F401
    SecureDownloader,
)

# ── L5: Orchestration ──
from ghasset.core.services.asset_install.orchestration.orchestrator import (  # noqa: F401
    InstallResult,
    install_asset,
)
