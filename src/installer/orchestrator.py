"""Breadth-first installation of a project's dependency graph.

Each level is a requirement set (name -> range). Every name in the level is
resolved, installed or confirmed, and the dependencies it declares are
merged into the next level. Names handled at an earlier level are never
revisited, which makes cyclic graphs terminate and lets the first range
seen for a name win. All packages share one flat module directory.
"""

from __future__ import annotations

import logging
import os
import re
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from constants import Constants
from common.errors import FilesystemError
from manifest import read_package_json
from registry.npm.client import NpmClient
from registry.npm.extract import is_within
from registry.npm.models import PackageMetadata, VersionRecord

logger = logging.getLogger(__name__)

# "name" or "@scope/name"; no segment may start with a dot or hold a separator.
_MODULE_KEY_RE = re.compile(r"^(?:@[^/\\@.][^/\\]*/)?[^/\\.][^/\\]*$")


class InstallOutcome(Enum):
    """Terminal state reached for one dependency name."""
    SKIPPED = "skipped"
    INSTALLED = "installed"
    REPAIRED = "repaired"
    UPGRADED = "upgraded"


class DependencyInstaller:
    """Drives the level-by-level install loop using an ``NpmClient``."""

    def __init__(self, client: NpmClient, modules_dir: str, bin_dir: Optional[str] = None):
        self.client = client
        self.modules_dir = modules_dir
        self.bin_dir = bin_dir or os.path.join(modules_dir, Constants.BIN_DIR)

    def install_all(self, requirements: Mapping[str, str]) -> Dict[str, InstallOutcome]:
        """Install ``requirements`` and everything they transitively require.

        Returns:
            dict: Package name -> outcome, for every name processed this run.
        """
        processed: Dict[str, str] = {}
        outcomes: Dict[str, InstallOutcome] = {}
        level = dict(requirements)
        depth = 0
        while level:
            logger.debug("Installing dependency level %d: %s", depth, ", ".join(level))
            level = self.install_dependencies(processed, level, outcomes)
            depth += 1
        return outcomes

    def install_dependencies(
        self,
        processed: Dict[str, str],
        required: Mapping[str, str],
        outcomes: Optional[Dict[str, InstallOutcome]] = None,
    ) -> Dict[str, str]:
        """Process one level and return the requirement set of the next one.

        Args:
            processed: Ledger of names already handled this run (name -> range);
                updated in place.
            required: Requirement set of the current level.
            outcomes: Optional mapping updated in place with each outcome.
        """
        logger.debug("Installing dependencies...")
        next_level: Dict[str, str] = {}
        self._ensure_modules_dir()

        for key, declared in required.items():
            if key in processed:
                logger.debug('Dependency "%s" already processed, skipping...', key)
                continue
            outcome, dependencies = self._install_dependency(key, declared)
            next_level.update(dependencies)
            processed[key] = self.client.extract_version_from_version(declared)
            if outcomes is not None:
                outcomes[key] = outcome

        logger.info("Dependencies installed, required module dependencies: %s",
                    ", ".join(next_level) or "none")
        return next_level

    def _ensure_modules_dir(self) -> None:
        if os.path.isdir(self.modules_dir):
            return
        logger.debug('"%s" directory not found, creating...', self.modules_dir)
        try:
            os.makedirs(self.modules_dir, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Cannot create {self.modules_dir}: {exc}") from exc
        logger.info('"%s" directory created', self.modules_dir)

    def _module_dir(self, key: str) -> str:
        """Map a dependency key to its directory under the module root.

        Keys come from registry documents, so anything that is not a plain
        or scoped package name, or that resolves outside the module root,
        is rejected before the filesystem is touched.
        """
        if not _MODULE_KEY_RE.match(key) or not is_within(self.modules_dir, key):
            raise FilesystemError(
                f'Refusing to install dependency "{key}": not a valid package name under {self.modules_dir}'
            )
        return os.path.join(self.modules_dir, key)

    def _install_dependency(self, key: str, declared: str) -> Tuple[InstallOutcome, Dict[str, str]]:
        required_version = self.client.extract_version_from_version(declared)
        package_name = (
            self.client.extract_package_name_from_version(declared)
            if self.client.is_version_contain_package_name(declared)
            else key
        )
        module_dir = self._module_dir(key)
        module_package_json = os.path.join(module_dir, Constants.PACKAGE_JSON_FILE)
        package = self.client.get_package(package_name)

        if os.path.isfile(module_package_json):
            logger.debug('Dependency "%s" already installed, checking version...', key)
            return self._check_installed(key, package, required_version, module_dir, module_package_json)

        logger.debug('Dependency "%s" not installed, installing...', key)
        version = self.client.get_closest_version(package, required_version)
        if os.path.exists(module_dir):
            # Leftovers without a descriptor are not a usable module.
            self.client.redownload_module(version, module_dir)
        else:
            self.client.download_module(version, module_dir)
        self.client.symlink_bin_files(version, module_dir, self.bin_dir)
        logger.info('Dependency "%s" installed with version: %s', key, version.version)
        return InstallOutcome.INSTALLED, dict(version.dependencies)

    def _check_installed(
        self,
        key: str,
        package: PackageMetadata,
        required_version: str,
        module_dir: str,
        module_package_json: str,
    ) -> Tuple[InstallOutcome, Dict[str, str]]:
        installed = read_package_json(module_package_json)
        installed_version = str(installed.get("version", ""))
        current: Optional[VersionRecord] = package.get_version(installed_version)

        if current is not None and self.client.is_version_satisfies(installed_version, required_version, package):
            logger.debug('Dependency "%s" already installed with correct version: %s, checking validity...',
                         key, required_version)
            if self.client.is_module_valid(current, module_dir):
                logger.debug('Dependency "%s" is valid', key)
                outcome = InstallOutcome.SKIPPED
            else:
                logger.warning('Dependency "%s" is invalid, reinstalling...', key)
                self.client.redownload_module(current, module_dir)
                outcome = InstallOutcome.REPAIRED
            self.client.symlink_bin_files(current, module_dir, self.bin_dir)
            return outcome, dict(installed.get("dependencies") or {})

        new_version = self.client.get_closest_version(package, required_version)
        logger.debug('Updating dependency "%s:%s" to version: %s...', key, installed_version, new_version.version)
        self.client.redownload_module(new_version, module_dir)
        self.client.symlink_bin_files(new_version, module_dir, self.bin_dir)
        logger.info('Dependency "%s" updated to version: %s', key, new_version.version)
        return InstallOutcome.UPGRADED, dict(new_version.dependencies)
