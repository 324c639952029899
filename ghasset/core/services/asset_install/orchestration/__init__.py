"""
L5 Orchestration — ``__init__.py`` re-exports top-level coordinators.

These are the entry points that external code calls.
"""

from ghasset.core.services.asset_install.orchestration.orchestrator import (  # noqa: F401
    InstallResult,
    install_asset,
)
