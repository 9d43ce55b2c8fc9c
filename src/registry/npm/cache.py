"""On-disk cache of registry metadata documents, one JSON file per package."""

from __future__ import annotations

import json
import logging
import os
import shutil
from typing import Any, Dict, Optional

from common.errors import FilesystemError

logger = logging.getLogger(__name__)


class PackageInfoCache:
    """Metadata cache scoped to a working directory.

    The cache lives for one process invocation: ``reset`` wipes and
    recreates the directory, so every run starts cold and no cross-process
    coherency is needed.
    """

    def __init__(self, cache_dir: str):
        """Initialize the cache.

        Args:
            cache_dir: Directory holding ``<package name>.json`` files.
        """
        self._cache_dir = cache_dir

    @property
    def cache_dir(self) -> str:
        return self._cache_dir

    def _path_for(self, package_name: str) -> str:
        return os.path.join(self._cache_dir, f"{package_name}.json")

    def reset(self) -> None:
        """Remove every cached document and recreate the cache directory."""
        try:
            shutil.rmtree(self._cache_dir, ignore_errors=False)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise FilesystemError(f"Cannot clear cache directory {self._cache_dir}: {exc}") from exc
        try:
            os.makedirs(self._cache_dir, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Cannot create cache directory {self._cache_dir}: {exc}") from exc

    def get(self, package_name: str) -> Optional[Dict[str, Any]]:
        """Return the cached document for ``package_name`` or None on a miss.

        A document that fails to decode is dropped and reported as a miss.
        """
        path = self._path_for(package_name)
        if not os.path.isfile(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except json.JSONDecodeError as exc:
            logger.warning("Discarding unreadable cache entry for %s: %s", package_name, exc)
            self.invalidate(package_name)
            return None
        except OSError as exc:
            raise FilesystemError(f"Cannot read cache file {path}: {exc}") from exc

    def set(self, package_name: str, document: Dict[str, Any]) -> None:
        """Write the verbatim document for ``package_name``."""
        path = self._path_for(package_name)
        try:
            # Scoped names ("@scope/pkg") need their scope directory.
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
        except OSError as exc:
            raise FilesystemError(f"Cannot write cache file {path}: {exc}") from exc

    def invalidate(self, package_name: str) -> None:
        try:
            os.remove(self._path_for(package_name))
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise FilesystemError(f"Cannot remove cache file for {package_name}: {exc}") from exc
