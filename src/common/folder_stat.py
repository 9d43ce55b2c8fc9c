"""Directory census used to detect corrupted module directories."""
from __future__ import annotations

import os
import stat
from dataclasses import dataclass

from common.errors import FilesystemError


@dataclass
class FolderStat:
    """Aggregate count and byte size of the regular files in a tree."""

    file_count: int = 0
    total_size: int = 0

    def add_folder_stat(self, other: "FolderStat") -> None:
        self.file_count += other.file_count
        self.total_size += other.total_size

    def add_file_stat(self, st: os.stat_result) -> None:
        # Only regular files count; symlinks and special files do not.
        if stat.S_ISREG(st.st_mode):
            self.file_count += 1
            self.total_size += st.st_size


def get_folder_stat(directory: str) -> FolderStat:
    """Recursively census ``directory`` without following symbolic links."""
    folder_stat = FolderStat()
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                entry_stat = entry.stat(follow_symlinks=False)
                folder_stat.add_file_stat(entry_stat)
                if stat.S_ISDIR(entry_stat.st_mode):
                    folder_stat.add_folder_stat(get_folder_stat(entry.path))
    except OSError as exc:
        raise FilesystemError(f"Cannot census directory {directory}: {exc}") from exc
    return folder_stat
