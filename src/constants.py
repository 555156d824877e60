"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 3


class SourceKinds(Enum):
    """Kinds of package sources supported by the program.

    Args:
        Enum (string): Source kinds supported by the program.
    """

    REGISTRY = "registry"
    GIT = "git"
    PATH = "path"
    DIRECTORY = "directory"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    CRATES_IO_NAME = "crates-io"
    CRATES_IO_INDEX = "sparse+https://index.crates.io/"
    CRATES_IO_API = "https://crates.io/api/v1"
    USER_AGENT = "crateclone/0.1.0 (https://github.com/crateclone/crateclone)"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    MANIFEST_FILE = "Cargo.toml"
    SENTINEL_FILE = ".cargo-ok"
    SENTINEL_CONTENT = '{"v":1}'
    PACKAGE_CACHE_LOCK = ".package-cache"
    REVERSE_DEPS_PER_PAGE = 100

    ENV_HOME = "CRATECLONE_HOME"
    ENV_CONFIG = "CRATECLONE_CONFIG"
    ENV_LOG_LEVEL = "CRATECLONE_LOG_LEVEL"
    DEFAULT_HOME = os.path.join("~", ".crateclone")
    CONFIG_FILE_NAMES = ["crateclone.yml", "crateclone.yaml"]
    USER_CONFIG_PATH = os.path.join("~", ".config", "crateclone", "config.yml")

    LOG_FORMAT = "[%(levelname)s] %(message)s"

    # Named sources loaded from the "sources" section of the config file.
    SOURCES: Dict[str, Dict[str, Any]] = {}


def default_home() -> str:
    """Return the cache home directory, honoring CRATECLONE_HOME."""
    env_home = os.environ.get(Constants.ENV_HOME)
    if env_home and env_home.strip():
        return os.path.expanduser(env_home.strip())
    return os.path.expanduser(Constants.DEFAULT_HOME)


def _config_candidates():
    """Yield config file locations in priority order."""
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path and env_path.strip():
        yield os.path.expanduser(env_path.strip())
    for name in Constants.CONFIG_FILE_NAMES:
        yield os.path.join(os.getcwd(), name)
    yield os.path.expanduser(Constants.USER_CONFIG_PATH)


def _load_yaml_config() -> Dict[str, Any]:
    """Load the first default YAML config file found.

    Returns:
        dict: Parsed configuration, or an empty dict when no file exists.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    for path in _config_candidates():
        if not os.path.isfile(path):
            continue
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logging.warning("Ignoring unreadable config file %s: %s", path, exc)
            continue
        if isinstance(data, dict):
            return data
        logging.warning("Ignoring config file %s: top level is not a mapping", path)
    return {}
