"""Tests for archive digests and the directory census."""

import base64
import hashlib
import os

import pytest

from common.errors import FilesystemError
from common.folder_stat import FolderStat, get_folder_stat
from common.integrity import get_file_hash, get_file_integrity, is_file_valid, is_integrity_valid


class TestIntegrity:
    """Streaming digest comparison."""

    def test_matching_shasum(self, tmp_path):
        path = tmp_path / "a.tgz"
        data = b"x" * 200000  # spans several read chunks
        path.write_bytes(data)
        assert is_file_valid(str(path), hashlib.sha1(data).hexdigest()) is True

    def test_mismatching_shasum(self, tmp_path):
        path = tmp_path / "a.tgz"
        path.write_bytes(b"payload")
        assert is_file_valid(str(path), hashlib.sha1(b"other").hexdigest()) is False

    def test_shasum_case_insensitive(self, tmp_path):
        path = tmp_path / "a.tgz"
        path.write_bytes(b"payload")
        assert is_file_valid(str(path), hashlib.sha1(b"payload").hexdigest().upper()) is True

    def test_read_error_is_filesystem_error(self, tmp_path):
        with pytest.raises(FilesystemError):
            get_file_hash(str(tmp_path / "missing.tgz"))

    def test_sri_integrity(self, tmp_path):
        path = tmp_path / "a.tgz"
        path.write_bytes(b"payload")
        good = "sha512-" + base64.b64encode(hashlib.sha512(b"payload").digest()).decode()
        bad = "sha512-" + base64.b64encode(hashlib.sha512(b"other").digest()).decode()
        assert is_integrity_valid(str(path), good) is True
        assert is_integrity_valid(str(path), bad) is False
        assert is_integrity_valid(str(path), f"{bad} {good}") is True

    def test_sri_unknown_algorithm_passes(self, tmp_path):
        path = tmp_path / "a.tgz"
        path.write_bytes(b"payload")
        assert is_integrity_valid(str(path), "nope-abc") is True

    def test_file_integrity_uses_first_supported_algorithm(self, tmp_path):
        path = tmp_path / "a.tgz"
        path.write_bytes(b"payload")
        expected = "sha512-" + base64.b64encode(hashlib.sha512(b"payload").digest()).decode()
        assert get_file_integrity(str(path), "nope-abc sha512-AAAA") == expected
        assert get_file_integrity(str(path), "nope-abc") == ""


class TestFolderStat:
    """Recursive file count and byte size aggregation."""

    def _populate(self, root):
        (root / "a.txt").write_bytes(b"12345")
        sub = root / "lib" / "deep"
        sub.mkdir(parents=True)
        (root / "lib" / "b.js").write_bytes(b"123")
        (sub / "c.js").write_bytes(b"1234567")

    def test_counts_regular_files(self, tmp_path):
        self._populate(tmp_path)
        stat = get_folder_stat(str(tmp_path))
        assert stat == FolderStat(file_count=3, total_size=15)

    def test_symlinks_not_counted(self, tmp_path):
        self._populate(tmp_path)
        os.symlink("a.txt", tmp_path / "link.txt")
        os.symlink("lib", tmp_path / "lib-link")
        stat = get_folder_stat(str(tmp_path))
        assert stat.file_count == 3
        assert stat.total_size == 15

    def test_associative(self, tmp_path):
        self._populate(tmp_path)
        total = FolderStat()
        total.add_file_stat(os.lstat(tmp_path / "a.txt"))
        total.add_folder_stat(get_folder_stat(str(tmp_path / "lib")))
        assert total == get_folder_stat(str(tmp_path))

    def test_empty_directory(self, tmp_path):
        assert get_folder_stat(str(tmp_path)) == FolderStat(0, 0)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FilesystemError):
            get_folder_stat(str(tmp_path / "missing"))
