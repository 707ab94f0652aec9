"""
Ledger and pattern store
"""

from .ledger import Ledger, IngestResult, BulkIngestResult, find_duplicate, insert_newest
from .pattern_store import (
    PatternStore,
    UpsertResult,
    BulkUpsertResult,
    find_match,
    merge_patterns,
    structural_key,
    upsert_into,
)

__all__ = [
    "Ledger",
    "IngestResult",
    "BulkIngestResult",
    "find_duplicate",
    "insert_newest",
    "PatternStore",
    "UpsertResult",
    "BulkUpsertResult",
    "find_match",
    "merge_patterns",
    "structural_key",
    "upsert_into",
]
