# ABOUTME: Library integrity verification for the BookLore catalog.
# ABOUTME: Checks that cataloged files exist on disk and optionally that their bytes still match.

import logging
from dataclasses import dataclass, field

from booklore.db.catalog import LibraryCatalog
from booklore.db.hashing import compute_file_hash
from booklore.models import BookRecord

logger = logging.getLogger(__name__)


@dataclass
class VerifyResult:
    """Aggregated results from a library verification run."""

    ok: int = 0
    missing_file: list[BookRecord] = field(default_factory=list)
    hash_mismatch: list[BookRecord] = field(default_factory=list)
    unreadable: list[BookRecord] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        """Total number of issues found across all categories."""
        return len(self.missing_file) + len(self.hash_mismatch) + len(self.unreadable)


def verify_library(
    catalog: LibraryCatalog, *, library_id: int | None = None, check_hash: bool = False
) -> VerifyResult:
    """Verify integrity of active books in the catalog.

    For each book:
    1. Check its file exists at library path / sub path / file name.
    2. If check_hash is True and the file exists, re-hash it and compare
       with current_hash.

    Args:
        catalog: The library catalog to verify.
        library_id: Restrict the check to one library.
        check_hash: Whether to recompute and compare content hashes.

    Returns:
        A VerifyResult with counts and lists of problematic records.
    """
    result = VerifyResult()

    for record in catalog.list_books(library_id=library_id):
        path = record.full_file_path
        if not path.is_file():
            result.missing_file.append(record)
            continue

        if check_hash:
            try:
                current_hash = compute_file_hash(path)
            except OSError as exc:
                logger.warning("Cannot hash %s for book %d: %s", path, record.id, exc)
                result.unreadable.append(record)
                continue
            if current_hash != record.current_hash:
                result.hash_mismatch.append(record)
                continue

        result.ok += 1

    return result
