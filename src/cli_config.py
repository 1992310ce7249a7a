"""CLI configuration overrides for runtime tunables.

Applied after the YAML config and environment overrides so command line
flags have the highest precedence.
"""

from __future__ import annotations

import logging
from typing import Optional

from constants import Constants

logger = logging.getLogger(__name__)

_GATEWAY_FLAGS = {
    "NPM_URL": "NPM_CDN_URL",
    "IPFS_GATEWAY": "IPFS_GATEWAY",
    "SWARM_GATEWAY": "SWARM_GATEWAY",
}


def apply_cli_overrides(args) -> None:
    """Copy gateway and cache flags from parsed ``args`` onto Constants."""
    for flag, attr in _GATEWAY_FLAGS.items():
        value = getattr(args, flag, None)
        if value and value.strip():
            setattr(Constants, attr, value.strip())
            logger.debug("CLI override %s=%s", attr, value.strip())
    if getattr(args, "NO_CACHE", False):
        Constants.CACHE_ENABLED = False


def resolve_log_level(args) -> Optional[str]:
    """``--loglevel`` wins, then ``--debug``; None leaves the choice to the environment."""
    if getattr(args, "LOG_LEVEL", None):
        return str(args.LOG_LEVEL).upper()
    if getattr(args, "DEBUG", False):
        return "DEBUG"
    return None
