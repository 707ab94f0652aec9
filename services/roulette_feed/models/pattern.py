"""
Pattern Data Models
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PatternRecord(BaseModel):
    """
    Predictive pattern with cumulative performance counters

    Unknown fields sent by clients are kept and carried through merges.
    A null score or counter counts as 0.
    """

    model_config = ConfigDict(
        extra="allow",
        coerce_numbers_to_str=True,
    )

    id: Optional[str] = Field(default=None, description="Generated when absent")
    type: Optional[str] = Field(default=None, description="Pattern family, used for stats")
    pattern: Any = Field(default=None, description="Opaque signature (sequence/shape)")
    expected_next: Any = Field(default=None, description="Predicted next outcome")
    confidence: float = Field(default=0.0, description="Confidence score, 0-100")
    occurrences: int = Field(default=0, ge=0)
    total_wins: int = Field(default=0, ge=0)
    total_losses: int = Field(default=0, ge=0)
    found_at: Optional[str] = Field(default=None, description="First time the pattern was stored")

    @field_validator("confidence", "occurrences", "total_wins", "total_losses", mode="before")
    @classmethod
    def _null_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value
