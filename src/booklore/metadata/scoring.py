# ABOUTME: Metadata completeness scoring for cataloged books.
# ABOUTME: Scores how well a book's metadata is filled in, using configurable per-field weights.

from dataclasses import asdict, dataclass, fields
from typing import Any

from booklore.metadata.types import BookMetadata


@dataclass
class MetadataMatchWeights:
    """Relative weight of each metadata field in the match score.

    Field names mirror the JSON keys stored in the ``metadata_match_weights``
    setting, so a stored dict can be passed straight to ``from_dict``.
    """

    title: float = 10
    subtitle: float = 1
    description: float = 10
    authors: float = 10
    publisher: float = 5
    publishedDate: float = 3
    seriesName: float = 2
    seriesNumber: float = 2
    seriesTotal: float = 1
    isbn13: float = 3
    isbn10: float = 5
    language: float = 2
    pageCount: float = 1
    categories: float = 10
    amazonRating: float = 3
    amazonReviewCount: float = 2
    goodreadsRating: float = 4
    goodreadsReviewCount: float = 2
    hardcoverRating: float = 2
    hardcoverReviewCount: float = 1

    def total_weight(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetadataMatchWeights":
        """Build weights from a stored dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known})


def _is_present(value: str | None) -> bool:
    return value is not None and bool(value.strip())


def _is_positive(value: float | int | None) -> bool:
    return value is not None and value > 0


def calculate_match_score(
    metadata: BookMetadata | None, weights: MetadataMatchWeights | None
) -> float:
    """Score a book's metadata completeness as a percentage.

    Each populated field contributes its weight; the sum is divided by the
    total weight and scaled to [0, 100]. Missing metadata, missing weights or
    an all-zero weight table score 0.
    """
    if metadata is None or weights is None:
        return 0.0

    total = weights.total_weight()
    if total == 0:
        return 0.0

    score = 0.0
    if _is_present(metadata.title):
        score += weights.title
    if _is_present(metadata.subtitle):
        score += weights.subtitle
    if _is_present(metadata.description):
        score += weights.description
    if metadata.authors:
        score += weights.authors
    if _is_present(metadata.publisher):
        score += weights.publisher
    if metadata.published_date is not None:
        score += weights.publishedDate
    if _is_present(metadata.series_name):
        score += weights.seriesName
    if _is_positive(metadata.series_number):
        score += weights.seriesNumber
    if _is_positive(metadata.series_total):
        score += weights.seriesTotal
    if _is_present(metadata.isbn13):
        score += weights.isbn13
    if _is_present(metadata.isbn10):
        score += weights.isbn10
    if _is_present(metadata.language):
        score += weights.language
    if _is_positive(metadata.page_count):
        score += weights.pageCount
    if metadata.categories:
        score += weights.categories
    if _is_positive(metadata.amazon_rating):
        score += weights.amazonRating
    if _is_positive(metadata.amazon_review_count):
        score += weights.amazonReviewCount
    if _is_positive(metadata.goodreads_rating):
        score += weights.goodreadsRating
    if _is_positive(metadata.goodreads_review_count):
        score += weights.goodreadsReviewCount
    if _is_positive(metadata.hardcover_rating):
        score += weights.hardcoverRating
    if _is_positive(metadata.hardcover_review_count):
        score += weights.hardcoverReviewCount

    return score / total * 100.0
