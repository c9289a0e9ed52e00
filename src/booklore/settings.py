# ABOUTME: Application settings stored in the catalog's app_settings table.
# ABOUTME: Cached behind a lock and rebuilt lazily after any update or explicit invalidation.

import json
import logging
import threading
from dataclasses import dataclass, field

from booklore.db.catalog import LibraryCatalog
from booklore.metadata.scoring import MetadataMatchWeights

logger = logging.getLogger(__name__)

UPLOAD_PATTERN = "upload_pattern"
METADATA_MATCH_WEIGHTS = "metadata_match_weights"
SOFT_DELETE_RETENTION_DAYS = "soft_delete_retention_days"

DEFAULT_UPLOAD_PATTERN = "{authors}/<{series}/><{seriesIndex}. >{title}< - {authors}>< ({year})>"
DEFAULT_SOFT_DELETE_RETENTION_DAYS = 30

SETTING_NAMES: tuple[str, ...] = (
    UPLOAD_PATTERN,
    METADATA_MATCH_WEIGHTS,
    SOFT_DELETE_RETENTION_DAYS,
)


@dataclass(frozen=True)
class AppSettings:
    """Snapshot of the runtime settings."""

    upload_pattern: str = DEFAULT_UPLOAD_PATTERN
    metadata_match_weights: MetadataMatchWeights = field(default_factory=MetadataMatchWeights)
    soft_delete_retention_days: int = DEFAULT_SOFT_DELETE_RETENTION_DAYS

    def as_strings(self) -> dict[str, str]:
        """Render every setting the way it is stored."""
        return {
            UPLOAD_PATTERN: self.upload_pattern,
            METADATA_MATCH_WEIGHTS: json.dumps(self.metadata_match_weights.to_dict()),
            SOFT_DELETE_RETENTION_DAYS: str(self.soft_delete_retention_days),
        }


def _parse_weights(raw: str) -> MetadataMatchWeights:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("metadata_match_weights must be a JSON object")
    try:
        return MetadataMatchWeights.from_dict(data)
    except TypeError as exc:
        raise ValueError(f"metadata_match_weights values must be numbers: {exc}") from exc


def _parse_retention(raw: str) -> int:
    days = int(raw)
    if days < 0:
        raise ValueError("soft_delete_retention_days must not be negative")
    return days


class AppSettingService:
    """Reads and writes application settings with a process-local cache."""

    def __init__(self, catalog: LibraryCatalog) -> None:
        self._catalog = catalog
        self._lock = threading.Lock()
        self._cached: AppSettings | None = None

    def get_app_settings(self) -> AppSettings:
        with self._lock:
            if self._cached is None:
                self._cached = self._build()
            return self._cached

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None

    def update_setting(self, name: str, value: str) -> None:
        """Validate and store one setting, then drop the cache.

        Raises:
            ValueError: If the name is unknown or the value does not parse.
        """
        if name not in SETTING_NAMES:
            raise ValueError(f"Unknown setting: {name}")
        if name == METADATA_MATCH_WEIGHTS:
            value = json.dumps(_parse_weights(value).to_dict())
        elif name == SOFT_DELETE_RETENTION_DAYS:
            value = str(_parse_retention(value))
        elif not value.strip():
            raise ValueError(f"{name} must not be blank")
        self._catalog.put_setting(name, value)
        self.invalidate()

    def _build(self) -> AppSettings:
        stored = self._catalog.get_settings_map()
        defaults = AppSettings()

        upload_pattern = stored.get(UPLOAD_PATTERN) or defaults.upload_pattern

        weights = defaults.metadata_match_weights
        raw_weights = stored.get(METADATA_MATCH_WEIGHTS)
        if raw_weights:
            try:
                weights = _parse_weights(raw_weights)
            except ValueError as exc:
                logger.warning("Ignoring invalid %s setting: %s", METADATA_MATCH_WEIGHTS, exc)

        retention = defaults.soft_delete_retention_days
        raw_retention = stored.get(SOFT_DELETE_RETENTION_DAYS)
        if raw_retention:
            try:
                retention = _parse_retention(raw_retention)
            except ValueError as exc:
                logger.warning("Ignoring invalid %s setting: %s", SOFT_DELETE_RETENTION_DAYS, exc)

        return AppSettings(
            upload_pattern=upload_pattern,
            metadata_match_weights=weights,
            soft_delete_retention_days=retention,
        )
