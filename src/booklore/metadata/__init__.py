# ABOUTME: Metadata package: the BookMetadata model, field locks, scoring and file-name parsing.
# ABOUTME: Exports the types shared by extraction, persistence and the editing service.

from booklore.metadata.locks import LockableField, LockAction
from booklore.metadata.normalizer import fill_from_file_name, parse_file_name
from booklore.metadata.scoring import MetadataMatchWeights, calculate_match_score
from booklore.metadata.types import BookMetadata

__all__ = [
    "BookMetadata",
    "LockAction",
    "LockableField",
    "MetadataMatchWeights",
    "calculate_match_score",
    "fill_from_file_name",
    "parse_file_name",
]
