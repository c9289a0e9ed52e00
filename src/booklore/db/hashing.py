# ABOUTME: Content fingerprinting for duplicate detection.
# ABOUTME: Hashes file bytes (never the name or path) in chunks so large PDFs stay cheap on memory.

import hashlib
from pathlib import Path

_CHUNK_SIZE = 65536  # 64 KB


def compute_file_hash(path: Path) -> str:
    """Compute the content fingerprint of a file.

    The digest is SHA-256 over the full byte stream, so two byte-identical
    files anywhere on disk get the same fingerprint.

    Args:
        path: Path to the file to hash.

    Returns:
        Lowercase hex digest string (64 characters).

    Raises:
        OSError: If the file is missing or cannot be read (for example it was
            removed while a scan was in progress).
    """
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(_CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def file_size_kb(path: Path) -> int | None:
    """Size of a file in whole kilobytes, or None if it cannot be stat'ed."""
    try:
        return path.stat().st_size // 1024
    except OSError:
        return None
