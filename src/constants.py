"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    INVALID_IMPORT = 3


class DiagnosticLevel(Enum):
    """Severity of a diagnostic emitted during resolution."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    # Cache layout
    DEPS_DIR = ".deps/"
    DEPS_NPM_DIR = ".deps/npm/"
    DEPS_GITHUB_DIR = ".deps/github/"
    DEPS_HTTP_DIR = ".deps/http/"
    DEPS_CUSTOM_DIR = ".deps/custom/"
    RESOLUTION_INDEX_FILE = ".deps/npm/.resolution-index.json"

    # Workspace files
    PACKAGE_JSON_FILE = "package.json"
    YARN_LOCK_FILE = "yarn.lock"
    PACKAGE_LOCK_FILE = "package-lock.json"
    SOURCE_EXTENSIONS = (".sol",)

    # Gateways
    NPM_CDN_URL = "https://cdn.jsdelivr.net/npm"
    IPFS_GATEWAY = "https://ipfs.io/ipfs"
    SWARM_GATEWAY = "https://swarm-gateways.net"

    # Environment overrides
    ENV_NPM_URL = "SOLRESOLVE_NPM_URL"
    ENV_IPFS_GATEWAY = "SOLRESOLVE_IPFS_GATEWAY"
    ENV_SWARM_GATEWAY = "SOLRESOLVE_SWARM_GATEWAY"
    ENV_CONFIG = "SOLRESOLVE_CONFIG"
    ENV_LOG_LEVEL = "SOLRESOLVE_LOG_LEVEL"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    CACHE_ENABLED = True

    CONFIG_FILES = ("solresolve.yml", "solresolve.yaml", ".solresolve.yml", ".solresolve.yaml")


_CONFIG_KEYS = {
    "npm_url": "NPM_CDN_URL",
    "ipfs_gateway": "IPFS_GATEWAY",
    "swarm_gateway": "SWARM_GATEWAY",
    "request_timeout": "REQUEST_TIMEOUT",
    "retry_max": "HTTP_RETRY_MAX",
    "retry_base_delay_sec": "HTTP_RETRY_BASE_DELAY_SEC",
    "cache_ttl_sec": "HTTP_CACHE_TTL_SEC",
    "cache": "CACHE_ENABLED",
}

_ENV_KEYS = {
    Constants.ENV_NPM_URL: "NPM_CDN_URL",
    Constants.ENV_IPFS_GATEWAY: "IPFS_GATEWAY",
    Constants.ENV_SWARM_GATEWAY: "SWARM_GATEWAY",
}


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Read the first available YAML config file.

    Search order: explicit path, $SOLRESOLVE_CONFIG, then the default file
    names in the current directory. Missing files yield an empty mapping.
    """
    candidates = []
    if path:
        candidates.append(path)
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        candidates.append(env_path)
    candidates.extend(Constants.CONFIG_FILES)

    for candidate in candidates:
        if not os.path.isfile(candidate):
            continue
        with open(candidate, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level must be a mapping", candidate)
            return {}
        logger.debug("Loaded configuration from %s", candidate)
        return data
    return {}


def apply_config(data: Dict[str, Any]) -> None:
    """Apply a configuration mapping onto Constants.

    Accepts either flat keys or a nested ``resolver:`` section.
    """
    section = data.get("resolver", data) if isinstance(data, dict) else {}
    if not isinstance(section, dict):
        return
    for key, attr in _CONFIG_KEYS.items():
        if key not in section or section[key] is None:
            continue
        current = getattr(Constants, attr)
        value = section[key]
        try:
            if isinstance(current, bool):
                value = bool(value)
            elif isinstance(current, int):
                value = int(value)
            elif isinstance(current, float):
                value = float(value)
            else:
                value = str(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid value for %s: %r", key, section[key])
            continue
        setattr(Constants, attr, value)


def apply_env_overrides() -> None:
    """Apply gateway overrides from the environment."""
    for env_name, attr in _ENV_KEYS.items():
        value = os.environ.get(env_name)
        if value and value.strip():
            setattr(Constants, attr, value.strip())


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load YAML config then environment overrides; returns the raw mapping."""
    data = _load_yaml_config(path)
    apply_config(data)
    apply_env_overrides()
    return data
