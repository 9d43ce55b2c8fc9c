"""Data models for npm registry documents (packuments)."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class DistInfo:
    """Archive descriptor of one published version."""
    tarball: str
    shasum: str
    integrity: Optional[str] = None
    file_count: Optional[int] = None
    unpacked_size: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DistInfo":
        return cls(
            tarball=data.get("tarball", ""),
            shasum=data.get("shasum", ""),
            integrity=data.get("integrity"),
            file_count=data.get("fileCount"),
            unpacked_size=data.get("unpackedSize"),
        )


@dataclass(frozen=True)
class VersionRecord:
    """One published version of a package."""
    name: str
    version: str
    dist: DistInfo
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    bin: Union[str, Dict[str, str], None] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionRecord":
        return cls(
            name=data.get("name", ""),
            version=data.get("version", ""),
            dist=DistInfo.from_dict(data.get("dist") or {}),
            dependencies=dict(data.get("dependencies") or {}),
            dev_dependencies=dict(data.get("devDependencies") or {}),
            bin=data.get("bin") or None,
        )

    @property
    def id(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True)
class PackageMetadata:
    """Full registry document for a package: every published version plus dist-tags.

    ``raw`` keeps the verbatim document so the cache can store it unchanged.
    """
    name: str
    versions: Dict[str, VersionRecord]
    dist_tags: Dict[str, str] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageMetadata":
        versions = {
            key: VersionRecord.from_dict(value)
            for key, value in (data.get("versions") or {}).items()
        }
        return cls(
            name=data.get("name") or data.get("_id", ""),
            versions=versions,
            dist_tags=dict(data.get("dist-tags") or {}),
            raw=data,
        )

    def get_version(self, version: str) -> Optional[VersionRecord]:
        return self.versions.get(version)
