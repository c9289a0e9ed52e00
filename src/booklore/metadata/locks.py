# ABOUTME: The fixed set of lockable metadata fields and their storage columns.
# ABOUTME: Locked fields are skipped by metadata edits; lookup tables map names to columns.

from enum import Enum


class LockableField(Enum):
    """A metadata field that a user can lock against automatic changes.

    Values are the public lock names accepted from clients.
    """

    TITLE = "titleLocked"
    SUBTITLE = "subtitleLocked"
    PUBLISHER = "publisherLocked"
    PUBLISHED_DATE = "publishedDateLocked"
    DESCRIPTION = "descriptionLocked"
    SERIES_NAME = "seriesNameLocked"
    SERIES_NUMBER = "seriesNumberLocked"
    SERIES_TOTAL = "seriesTotalLocked"
    ISBN13 = "isbn13Locked"
    ISBN10 = "isbn10Locked"
    LANGUAGE = "languageLocked"
    PAGE_COUNT = "pageCountLocked"
    AUTHORS = "authorsLocked"
    CATEGORIES = "categoriesLocked"
    MOODS = "moodsLocked"
    TAGS = "tagsLocked"
    COVER = "coverLocked"

    @property
    def column(self) -> str:
        """Name of the book_metadata column that stores this lock."""
        return LOCK_COLUMNS[self]

    @classmethod
    def from_name(cls, name: str) -> "LockableField":
        """Resolve a public lock name (or a legacy alias) to a LockableField.

        Raises:
            ValueError: If the name is not a known lockable field.
        """
        name = _LOCK_ALIASES.get(name, name)
        for lock in cls:
            if lock.value == name:
                return lock
        raise ValueError(f"Unknown lockable field: {name}")


class LockAction(Enum):
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"

    @classmethod
    def parse(cls, value: str) -> "LockAction":
        return cls(value.strip().upper())


_LOCK_ALIASES: dict[str, str] = {
    "thumbnailLocked": "coverLocked",
}

LOCK_COLUMNS: dict[LockableField, str] = {
    LockableField.TITLE: "title_locked",
    LockableField.SUBTITLE: "subtitle_locked",
    LockableField.PUBLISHER: "publisher_locked",
    LockableField.PUBLISHED_DATE: "published_date_locked",
    LockableField.DESCRIPTION: "description_locked",
    LockableField.SERIES_NAME: "series_name_locked",
    LockableField.SERIES_NUMBER: "series_number_locked",
    LockableField.SERIES_TOTAL: "series_total_locked",
    LockableField.ISBN13: "isbn13_locked",
    LockableField.ISBN10: "isbn10_locked",
    LockableField.LANGUAGE: "language_locked",
    LockableField.PAGE_COUNT: "page_count_locked",
    LockableField.AUTHORS: "authors_locked",
    LockableField.CATEGORIES: "categories_locked",
    LockableField.MOODS: "moods_locked",
    LockableField.TAGS: "tags_locked",
    LockableField.COVER: "cover_locked",
}

# BookMetadata attribute -> the lock that guards it.
ATTRIBUTE_LOCKS: dict[str, LockableField] = {
    "title": LockableField.TITLE,
    "subtitle": LockableField.SUBTITLE,
    "publisher": LockableField.PUBLISHER,
    "published_date": LockableField.PUBLISHED_DATE,
    "description": LockableField.DESCRIPTION,
    "series_name": LockableField.SERIES_NAME,
    "series_number": LockableField.SERIES_NUMBER,
    "series_total": LockableField.SERIES_TOTAL,
    "isbn13": LockableField.ISBN13,
    "isbn10": LockableField.ISBN10,
    "language": LockableField.LANGUAGE,
    "page_count": LockableField.PAGE_COUNT,
    "authors": LockableField.AUTHORS,
    "categories": LockableField.CATEGORIES,
    "moods": LockableField.MOODS,
    "tags": LockableField.TAGS,
}
