"""Runtime configuration for the registry client and installer.

Builds an explicit ``ClientConfig`` from, in increasing precedence:
``Constants`` defaults, a YAML config file, environment variables, and CLI
flags. Nothing here mutates global state.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from constants import Constants

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ClientConfig:
    """Explicit configuration handed to ``NpmClient`` and the installer."""

    registry_url: str = Constants.REGISTRY_URL_NPM
    working_dir: str = "."
    cacheable: bool = True
    request_timeout: float = Constants.REQUEST_TIMEOUT
    retry_max: int = Constants.HTTP_RETRY_MAX
    retry_base_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC

    def __post_init__(self):
        object.__setattr__(self, "registry_url", self.registry_url.rstrip("/"))
        object.__setattr__(self, "working_dir", os.path.abspath(self.working_dir))

    @property
    def package_json_path(self) -> str:
        return os.path.join(self.working_dir, Constants.PACKAGE_JSON_FILE)

    @property
    def modules_dir(self) -> str:
        return os.path.join(self.working_dir, Constants.NODE_MODULES_DIR)

    @property
    def bin_dir(self) -> str:
        return os.path.join(self.modules_dir, Constants.BIN_DIR)

    @property
    def cache_dir(self) -> str:
        return os.path.join(self.working_dir, *Constants.CACHE_DIR.split("/"))


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load settings from a YAML file.

    Settings may sit at the top level or under a ``gpm:`` section. A missing
    or malformed file yields an empty mapping with a warning.
    """
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s", config_path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a mapping", config_path)
        return {}
    section = data.get("gpm", data)
    return section if isinstance(section, dict) else {}


def _coerce(value: Any, cast, default, name: str):
    try:
        return cast(value)
    except (TypeError, ValueError):
        logger.warning("Invalid value for %s: %r, using %r", name, value, default)
        return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def build_config(args: Any = None, environ: Optional[Dict[str, str]] = None) -> ClientConfig:
    """Resolve a ``ClientConfig`` for this invocation.

    Args:
        args: Parsed CLI namespace (optional); reads ``CONFIG``, ``REGISTRY``,
            ``NO_CACHE`` and ``WORKING_DIR`` when present.
        environ: Environment mapping, defaults to ``os.environ``.
    """
    environ = os.environ if environ is None else environ
    working_dir = getattr(args, "WORKING_DIR", None) or os.getcwd()

    config_path = getattr(args, "CONFIG", None)
    if not config_path:
        default_path = os.path.join(working_dir, Constants.CONFIG_FILE)
        config_path = default_path if os.path.isfile(default_path) else None
    settings = load_config_file(config_path)

    registry_url = settings.get("registry", Constants.REGISTRY_URL_NPM)
    timeout = _coerce(settings.get("timeout", Constants.REQUEST_TIMEOUT), float,
                      Constants.REQUEST_TIMEOUT, "timeout")
    retry_max = _coerce(settings.get("retries", Constants.HTTP_RETRY_MAX), int,
                        Constants.HTTP_RETRY_MAX, "retries")
    retry_delay = _coerce(settings.get("retry_delay", Constants.HTTP_RETRY_BASE_DELAY_SEC), float,
                          Constants.HTTP_RETRY_BASE_DELAY_SEC, "retry_delay")
    cacheable = _as_bool(settings.get("cache", True))

    if environ.get(Constants.ENV_REGISTRY_URL):
        registry_url = environ[Constants.ENV_REGISTRY_URL]
    if environ.get(Constants.ENV_REQUEST_TIMEOUT):
        timeout = _coerce(environ[Constants.ENV_REQUEST_TIMEOUT], float, timeout,
                          Constants.ENV_REQUEST_TIMEOUT)
    if _as_bool(environ.get(Constants.ENV_NO_CACHE, "")):
        cacheable = False

    if getattr(args, "REGISTRY", None):
        registry_url = args.REGISTRY
    if getattr(args, "NO_CACHE", False):
        cacheable = False

    return ClientConfig(
        registry_url=str(registry_url),
        working_dir=working_dir,
        cacheable=cacheable,
        request_timeout=timeout,
        retry_max=retry_max,
        retry_base_delay=retry_delay,
    )
