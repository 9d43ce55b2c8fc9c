"""NPM registry client: package metadata, module download and validation."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from typing import Callable, Dict, Optional
from urllib.parse import quote, urlsplit

import requests

from cli_config import ClientConfig
from constants import Constants
from common.errors import FilesystemError, IntegrityError, RegistryError, ResolutionError
from common.folder_stat import get_folder_stat
from common.http_client import safe_get
from common.integrity import get_file_hash, get_file_integrity, is_file_valid, is_integrity_valid
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning import parser
from versioning.resolvers import NpmVersionResolver

from .cache import PackageInfoCache
from .extract import unpack_module
from .models import PackageMetadata, VersionRecord

logger = logging.getLogger(__name__)

HttpGet = Callable[..., requests.Response]


def _ensure_dir(path: str) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(f"Cannot create directory {path}: {exc}") from exc


def _remove_file(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise FilesystemError(f"Cannot remove {path}: {exc}") from exc


class NpmClient:
    """Client for an npm-compatible registry.

    Resolves package metadata (through an on-disk cache wiped at
    construction), downloads and verifies archives, and checks installed
    module directories against their archive descriptor.
    """

    def __init__(self, config: ClientConfig, http_get: Optional[HttpGet] = None):
        """Initialize the client.

        Args:
            config: Explicit client configuration.
            http_get: GET callable compatible with ``common.http_client.safe_get``;
                tests inject an in-memory transport here.
        """
        self.config = config
        self._http_get = http_get or safe_get
        self._resolver = NpmVersionResolver()
        self._cache = PackageInfoCache(config.cache_dir)
        if config.cacheable:
            self._cache.reset()

    @property
    def registry_url(self) -> str:
        return self.config.registry_url

    def _get(self, url: str, *, context: str, **kwargs) -> requests.Response:
        return self._http_get(
            url,
            context=context,
            timeout=self.config.request_timeout,
            retry_max=self.config.retry_max,
            retry_base_delay=self.config.retry_base_delay,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def get_package(self, package_name: str) -> PackageMetadata:
        """Return metadata for ``package_name``, from cache when available."""
        document = None
        if self.config.cacheable:
            logger.debug('Fetching package "%s" from cache...', package_name)
            document = self._cache.get(package_name)
            if document is not None:
                logger.info('Package "%s" fetched from cache', package_name)
        if document is None:
            logger.debug('Downloading package "%s"...', package_name)
            document = self._download_package_info(package_name)
            logger.info('Package "%s" downloaded from registry "%s"',
                        package_name, safe_url(self.registry_url))
            if self.config.cacheable:
                logger.debug('Writing package "%s" to cache...', package_name)
                self._cache.set(package_name, document)
        return PackageMetadata.from_dict(document)

    def package_url(self, package_name: str) -> str:
        # Scoped names keep their "@" but encode the slash.
        return f"{self.registry_url}/{quote(package_name, safe='@')}"

    def _download_package_info(self, package_name: str) -> Dict:
        package_url = self.package_url(package_name)
        res = self._get(package_url, context=package_name,
                        headers={"Accept": "application/json"})
        try:
            if not res.ok:
                logger.error("Failed to download package %s: %s %s",
                             package_name, res.status_code, res.reason)
                raise RegistryError(
                    f'Failed to download package "{package_name}": {res.status_code} {res.reason}',
                    package_name=package_name,
                    status_code=res.status_code,
                    reason=res.reason,
                )
            try:
                document = res.json()
            except ValueError as exc:
                raise RegistryError(
                    f'Malformed metadata for package "{package_name}": {exc}',
                    package_name=package_name,
                    status_code=res.status_code,
                ) from exc
        finally:
            res.close()
        if not isinstance(document, dict) or not isinstance(document.get("versions"), dict):
            raise RegistryError(
                f'Malformed metadata for package "{package_name}": missing "versions"',
                package_name=package_name,
                status_code=res.status_code,
            )
        return document

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------
    def redownload_module(self, version: VersionRecord, destination_dir: str) -> None:
        """Delete ``destination_dir`` and download ``version`` into it again."""
        logger.debug("Deleting module: %s...", version.name)
        try:
            shutil.rmtree(destination_dir)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise FilesystemError(f"Cannot delete {destination_dir}: {exc}") from exc
        logger.debug("Module: %s deleted, downloading new version...", version.name)
        self.download_module(version, destination_dir)
        logger.info("Module: %s downloaded", version.id)

    def download_module(self, version: VersionRecord, destination_dir: str) -> None:
        """Download, verify and unpack ``version`` into ``destination_dir``.

        The archive is streamed to a temporary file next to the module
        directory and removed afterwards, whether or not it verified.

        Raises:
            RegistryError: The archive request failed.
            IntegrityError: The archive digest does not match ``dist.shasum`` or ``dist.integrity``.
            ExtractionError: The archive could not be unpacked.
        """
        file_url = version.dist.tarball
        file_name = os.path.basename(urlsplit(file_url).path) or f"{version.name}-{version.version}.tgz"
        _ensure_dir(destination_dir)

        archive_path = self._fetch_archive(version, file_url, destination_dir)
        try:
            self._verify_archive(version, archive_path, file_name)
            unpack_module(archive_path, destination_dir)
        finally:
            _remove_file(archive_path)

    def _create_temp_archive(self, destination_dir: str) -> str:
        parent_dir = os.path.dirname(os.path.abspath(destination_dir))
        try:
            fd, archive_path = tempfile.mkstemp(
                prefix=f".{os.path.basename(destination_dir)}-", suffix=".tgz", dir=parent_dir
            )
            os.close(fd)
        except OSError as exc:
            raise FilesystemError(f"Cannot create temporary archive in {parent_dir}: {exc}") from exc
        return archive_path

    def _fetch_archive(self, version: VersionRecord, file_url: str, destination_dir: str) -> str:
        res = self._get(file_url, context=version.id, stream=True)
        try:
            if not res.ok:
                logger.error("Failed to download %s: %s %s", safe_url(file_url), res.status_code, res.reason)
                raise RegistryError(
                    f'Failed to download archive for "{version.id}": {res.status_code} {res.reason}',
                    package_name=version.name,
                    status_code=res.status_code,
                    reason=res.reason,
                )
            archive_path = self._create_temp_archive(destination_dir)
            try:
                with open(archive_path, "wb") as fh:
                    for chunk in res.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
            except requests.RequestException as exc:
                _remove_file(archive_path)
                raise RegistryError(
                    f'Download of "{version.id}" interrupted: {exc}', package_name=version.name
                ) from exc
            except OSError as exc:
                _remove_file(archive_path)
                raise FilesystemError(f"Cannot write {archive_path}: {exc}") from exc
        finally:
            res.close()

        if is_debug_enabled(logger):
            logger.debug(
                "Archive downloaded",
                extra=extra_context(
                    event="download",
                    component="client",
                    action="GET",
                    target=safe_url(file_url),
                    package=version.id,
                ),
            )
        return archive_path

    def _verify_archive(self, version: VersionRecord, archive_path: str, file_name: str) -> None:
        if not is_file_valid(archive_path, version.dist.shasum):
            logger.error('Downloaded file "%s" has incorrect hash', file_name)
            raise IntegrityError(file_name, version.dist.shasum, get_file_hash(archive_path).hexdigest())
        if version.dist.integrity and not is_integrity_valid(archive_path, version.dist.integrity):
            logger.error('Downloaded file "%s" has incorrect integrity', file_name)
            raise IntegrityError(file_name, version.dist.integrity,
                                 get_file_integrity(archive_path, version.dist.integrity))

    def is_module_valid(self, version: VersionRecord, destination_dir: str) -> bool:
        """Compare the census of ``destination_dir`` with the archive descriptor.

        This is a structural check only: a tree with the same file count
        and byte total as the archive passes even if contents differ.
        Descriptors without ``fileCount``/``unpackedSize`` cannot be checked
        and are accepted.
        """
        if not os.path.isdir(destination_dir):
            return False
        if version.dist.file_count is None or version.dist.unpacked_size is None:
            logger.debug("No file statistics published for %s, skipping validity check", version.id)
            return True
        folder_stat = get_folder_stat(destination_dir)
        logger.debug("Module %s census: %d files, %d bytes (expected %d files, %d bytes)",
                     version.id, folder_stat.file_count, folder_stat.total_size,
                     version.dist.file_count, version.dist.unpacked_size)
        return (folder_stat.file_count == version.dist.file_count
                and folder_stat.total_size == version.dist.unpacked_size)

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------
    def get_closest_version(self, package: PackageMetadata, required_version: str) -> VersionRecord:
        """Return the highest published version satisfying ``required_version``.

        Raises:
            ResolutionError: No published version satisfies the range.
        """
        version_range = self.get_sanitized_version(required_version)
        closest = self._resolver.pick_closest(package.versions.keys(), version_range, package.dist_tags)
        if closest is None or closest not in package.versions:
            raise ResolutionError(package.name, version_range)
        return package.versions[closest]

    def is_version_satisfies(self, package_version: str, required_version: str,
                             package: Optional[PackageMetadata] = None) -> bool:
        dist_tags = package.dist_tags if package is not None else None
        return self._resolver.satisfies(package_version, self.get_sanitized_version(required_version),
                                        dist_tags)

    @staticmethod
    def extract_package_name_from_version(version: str) -> str:
        return parser.extract_package_name(version)

    @staticmethod
    def extract_version_from_version(version: str) -> str:
        return parser.extract_version(version)

    @staticmethod
    def get_sanitized_version(version: str) -> str:
        return parser.get_sanitized_version(version)

    @staticmethod
    def is_version_contain_package_name(version: str) -> bool:
        return parser.is_version_contain_package_name(version)

    # ------------------------------------------------------------------
    # Executables
    # ------------------------------------------------------------------
    def symlink_bin_files(self, version: VersionRecord, module_dir_path: str, bin_dir_path: str) -> None:
        """Create one relative symlink in ``bin_dir_path`` per declared executable.

        A string ``bin`` is linked under the (unscoped) package name; a
        mapping is linked under each command key. Existing links are replaced.
        """
        if not version.bin:
            return
        _ensure_dir(bin_dir_path)
        if isinstance(version.bin, str):
            bin_files = {version.name.rsplit("/", 1)[-1]: version.bin}
        else:
            bin_files = version.bin

        for command, rel_path in bin_files.items():
            src_path = os.path.normpath(os.path.join(module_dir_path, rel_path))
            dest_path = os.path.join(bin_dir_path, os.path.basename(command))
            relative_bin_path = os.path.relpath(src_path, bin_dir_path)
            try:
                if os.path.lexists(dest_path):
                    os.remove(dest_path)
                os.symlink(relative_bin_path, dest_path)
            except OSError as exc:
                raise FilesystemError(f"Cannot link {dest_path} -> {relative_bin_path}: {exc}") from exc
            logger.debug("Linked %s -> %s", dest_path, relative_bin_path)
