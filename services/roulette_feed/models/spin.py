"""
Spin Data Models
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from shared.enums import SpinColor


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def spin_id_for(timestamp: Any) -> str:
    """Identifier of a spin, derived from its source timestamp so refetches collide"""
    return f"spin_{timestamp}"


class SpinRecord(BaseModel):
    """
    One roulette result

    `color` is computed from `number` and is never read from input.
    Records are immutable once built.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    id: str = Field(..., description="spin_<source timestamp>")
    number: int = Field(..., description="Rolled number")
    timestamp: str = Field(..., description="Source-side creation time")
    collected_at: str = Field(default_factory=utc_now_iso, description="Ingestion time (UTC)")
    collected_by: str = Field(default="client", description="Origin tag")

    @computed_field
    @property
    def color(self) -> SpinColor:
        return SpinColor.from_number(self.number)

    @model_validator(mode="before")
    @classmethod
    def _fill_identity(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        # Records posted by older clients carry the source time as created_at only
        if data.get("timestamp") is None and data.get("created_at") is not None:
            data["timestamp"] = data["created_at"]
        if not data.get("id") and data.get("timestamp") is not None:
            data["id"] = spin_id_for(data["timestamp"])
        return data
