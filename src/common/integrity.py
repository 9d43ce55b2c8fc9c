"""Streaming content digests for downloaded archives."""
from __future__ import annotations

import base64
import hashlib
import logging

from constants import Constants
from common.errors import FilesystemError

logger = logging.getLogger(__name__)


def get_file_hash(path: str, algorithm: str = Constants.SHASUM_ALGORITHM) -> "hashlib._Hash":
    """Feed the file at ``path`` through ``algorithm`` chunk by chunk.

    Read errors surface as ``FilesystemError``; they are never reported as
    a digest mismatch.
    """
    digest = hashlib.new(algorithm)
    try:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(Constants.HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        raise FilesystemError(f"Cannot read {path} for hashing: {exc}") from exc
    return digest


def is_file_valid(path: str, expected_shasum: str) -> bool:
    """Return True when the hex SHA-1 of the file equals ``expected_shasum``."""
    actual = get_file_hash(path).hexdigest()
    logger.debug("Computed %s for %s: %s", Constants.SHASUM_ALGORITHM, path, actual)
    return actual == (expected_shasum or "").strip().lower()


def is_integrity_valid(path: str, integrity: str) -> bool:
    """Check a Subresource Integrity string (``sha512-<base64>``).

    Multiple space-separated hashes are allowed; the file is valid when any
    of the supported ones match.
    """
    checked = False
    for token in integrity.split():
        algorithm, sep, expected = token.partition("-")
        if not sep or algorithm not in hashlib.algorithms_available:
            continue
        checked = True
        actual = base64.b64encode(get_file_hash(path, algorithm).digest()).decode("ascii")
        if actual == expected.split("?", 1)[0]:
            return True
    # Nothing we can verify is treated as a pass; the shasum still applies.
    return not checked


def get_file_integrity(path: str, integrity: str) -> str:
    """Return ``<alg>-<base64>`` for the file, using the first supported algorithm in ``integrity``."""
    for token in integrity.split():
        algorithm, sep, _ = token.partition("-")
        if sep and algorithm in hashlib.algorithms_available:
            return f"{algorithm}-{base64.b64encode(get_file_hash(path, algorithm).digest()).decode('ascii')}"
    return ""
