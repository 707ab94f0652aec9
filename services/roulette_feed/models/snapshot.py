"""
Snapshot Document Models

Layout on disk:
    {spins: [...], patterns: [...],
     metadata: {version, createdAt, lastUpdate, totalSpins, totalPatterns}}
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .spin import SpinRecord, utc_now_iso
from .pattern import PatternRecord

SNAPSHOT_VERSION = "2.0"


class SnapshotMetadata(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    version: str = SNAPSHOT_VERSION
    created_at: str = Field(default_factory=utc_now_iso)
    last_update: Optional[str] = None
    total_spins: int = 0
    total_patterns: int = 0


class Snapshot(BaseModel):
    """Whole persisted state: ledger, pattern store and metadata"""

    # Documents written by the first version of the service used giros/padroes
    spins: List[SpinRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("spins", "giros"),
    )
    patterns: List[PatternRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("patterns", "padroes"),
    )
    metadata: SnapshotMetadata = Field(default_factory=SnapshotMetadata)

    def refresh_totals(self) -> None:
        self.metadata.total_spins = len(self.spins)
        self.metadata.total_patterns = len(self.patterns)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
