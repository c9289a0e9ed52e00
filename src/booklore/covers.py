# ABOUTME: On-disk store for extracted cover images, one folder per book under the data directory.
# ABOUTME: Stores raw image bytes as extracted; resizing and thumbnails are left to consumers.

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".booklore" / "data"

_COVER_STEM = "cover"


class CoverStore:
    """Saves and locates book covers at <data_dir>/covers/<book_id>/cover.<suffix>."""

    def __init__(self, data_dir: Path | None = None) -> None:
        self._root = (data_dir or DEFAULT_DATA_DIR) / "covers"

    @property
    def root(self) -> Path:
        return self._root

    def save(self, book_id: int, data: bytes, suffix: str = "jpg") -> Path:
        """Write a book's cover, replacing any previous cover of any format."""
        book_dir = self._root / str(book_id)
        book_dir.mkdir(parents=True, exist_ok=True)
        for existing in book_dir.glob(f"{_COVER_STEM}.*"):
            existing.unlink()
        target = book_dir / f"{_COVER_STEM}.{suffix.lstrip('.').lower() or 'jpg'}"
        target.write_bytes(data)
        logger.debug("Saved cover for book %d: %s", book_id, target)
        return target

    def path_for(self, book_id: int) -> Path | None:
        """Path of a book's stored cover, or None if it has none."""
        book_dir = self._root / str(book_id)
        if not book_dir.is_dir():
            return None
        for candidate in sorted(book_dir.glob(f"{_COVER_STEM}.*")):
            return candidate
        return None

    def delete(self, book_id: int) -> None:
        shutil.rmtree(self._root / str(book_id), ignore_errors=True)
