"""Archive extraction for downloaded package tarballs.

Registry tarballs wrap their payload in a single top-level folder
(conventionally ``package/``); extraction strips exactly that one path
component so the payload lands directly in the module directory.
"""

from __future__ import annotations

import gzip
import logging
import os
import posixpath
import tarfile
import zlib
from typing import List

from common.errors import ExtractionError, FilesystemError

logger = logging.getLogger(__name__)


def _strip_components(name: str, count: int) -> str:
    parts = [p for p in name.replace("\\", "/").split("/") if p not in ("", ".")]
    return "/".join(parts[count:])


def is_within(dest_dir: str, relative: str) -> bool:
    """Return True when ``relative`` resolves inside ``dest_dir``."""
    if posixpath.isabs(relative) or os.path.isabs(relative):
        return False
    target = os.path.realpath(os.path.join(dest_dir, relative))
    root = os.path.realpath(dest_dir)
    return target == root or target.startswith(root + os.sep)


def _prepare_members(tar: tarfile.TarFile, dest_dir: str, strip: int) -> List[tarfile.TarInfo]:
    members = []
    for member in tar.getmembers():
        stripped = _strip_components(member.name, strip)
        if not stripped:
            continue
        if not is_within(dest_dir, stripped):
            raise ExtractionError(f"Archive member escapes destination: {member.name}")
        if member.islnk():
            link_target = _strip_components(member.linkname, strip)
            if not is_within(dest_dir, link_target):
                raise ExtractionError(f"Archive hard link escapes destination: {member.name}")
            member.linkname = link_target
        elif member.issym():
            if not is_within(dest_dir, posixpath.join(posixpath.dirname(stripped), member.linkname)):
                raise ExtractionError(f"Archive symlink escapes destination: {member.name}")
        elif not (member.isfile() or member.isdir()):
            logger.debug("Skipping special archive member %s", member.name)
            continue
        member.name = stripped
        members.append(member)
    return members


def unpack_module(src_file: str, dest_dir: str, strip: int = 1) -> None:
    """Decompress and unpack ``src_file`` into ``dest_dir``.

    Args:
        src_file: Path to a (usually gzip-compressed) tar archive.
        dest_dir: Existing destination directory.
        strip: Number of leading path components removed from every member.

    Raises:
        ExtractionError: On a corrupt stream, unsupported format, or a member
            that would be written outside ``dest_dir``.
    """
    try:
        with tarfile.open(src_file, mode="r:*") as tar:
            members = _prepare_members(tar, dest_dir, strip)
            if hasattr(tarfile, "data_filter"):
                tar.extractall(dest_dir, members=members, filter="data")
            else:
                tar.extractall(dest_dir, members=members)
    except ExtractionError:
        raise
    except (tarfile.TarError, zlib.error, EOFError, gzip.BadGzipFile) as exc:
        raise ExtractionError(f"Cannot unpack {os.path.basename(src_file)}: {exc}") from exc
    except OSError as exc:
        raise FilesystemError(f"Cannot unpack into {dest_dir}: {exc}") from exc
    logger.debug("Unpacked %d entries from %s into %s", len(members), src_file, dest_dir)
