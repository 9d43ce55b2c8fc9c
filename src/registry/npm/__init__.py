"""npm-compatible registry client, metadata cache and archive extraction."""

from .client import NpmClient
from .models import DistInfo, PackageMetadata, VersionRecord

__all__ = ["NpmClient", "DistInfo", "PackageMetadata", "VersionRecord"]
