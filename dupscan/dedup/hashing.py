"""Content hashing for whole-file duplicate detection."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, Union

DEFAULT_CHUNK_SIZE = 65536


def compute_digest(data: bytes) -> str:
    """Return the SHA-256 hex digest of ``data``.

    The empty byte string hashes to the SHA-256 empty-input digest.
    """
    return hashlib.sha256(data).hexdigest()


def hash_stream(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Hash a binary file-like object without loading it whole."""
    digest = hashlib.sha256()
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        digest.update(chunk)
    return digest.hexdigest()


def hash_file(path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Hash the file at ``path``."""
    with open(path, "rb") as f:
        return hash_stream(f, chunk_size)
