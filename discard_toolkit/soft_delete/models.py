"""
Data models for discard operations.

These models define per-model discard settings, the outcome of a transition
and the structure of discard reports.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import DiscardConfig


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class TransitionKind(str, Enum):
    """The two transitions of the discard state machine."""

    DISCARD = "discard"
    UNDISCARD = "undiscard"


class TransitionResult(Enum):
    """Outcome of a discard or undiscard attempt.

    Truthy only when the transition was performed, so callers may simply write
    ``if post.discard(): ...``.
    """

    PERFORMED = "performed"
    NOT_PERFORMED = "not_performed"

    def __bool__(self) -> bool:
        return self is TransitionResult.PERFORMED


class HookResult(Enum):
    """Value a before-hook may return to let a transition proceed or veto it."""

    PROCEED = "proceed"
    ABORT = "abort"


class DiscardSettings(BaseModel):
    """Per-model discard settings.

    Declare on a model as ``__discard__``. Unset values are filled from the
    global configuration when the model class is defined.
    """

    model_config = ConfigDict(frozen=True)

    marker_field: Optional[str] = Field(
        None, description="Attribute holding the discard timestamp"
    )
    discarded_by_field: Optional[str] = Field(
        None, description="Attribute recording who discarded the record"
    )
    lock_field: Optional[str] = Field(
        None, description="Attribute releasing a unique index while discarded"
    )
    lock_neutral_value: Optional[int] = Field(
        None, description="Lock value while the record is kept"
    )

    @field_validator("marker_field", "discarded_by_field", "lock_field")
    @classmethod
    def validate_field_name(cls, v: Optional[str]) -> Optional[str]:
        """Field names must be usable as attribute names."""
        if v is not None and not v.isidentifier():
            raise ValueError(f"Field name must be a valid identifier, got {v!r}")
        return v

    def resolve(self, config: DiscardConfig) -> "DiscardSettings":
        """Return a copy with defaults taken from ``config``."""
        return self.model_copy(
            update={
                "marker_field": self.marker_field or config.discard_column,
                "lock_neutral_value": (
                    config.lock_neutral_value
                    if self.lock_neutral_value is None
                    else self.lock_neutral_value
                ),
            }
        )

    @property
    def skips_validation(self) -> bool:
        """Actor and lock variants write without running record validation."""
        return bool(self.discarded_by_field or self.lock_field)


class DiscardReport(BaseModel):
    """Summary of kept and discarded records across models."""

    generated_at: datetime = Field(
        default_factory=utcnow, description="When the report was generated"
    )
    total_kept: int = Field(0, description="Kept records across all models")
    total_discarded: int = Field(0, description="Discarded records across all models")
    by_model: Dict[str, Dict[str, int]] = Field(
        default_factory=dict, description="Kept and discarded counts per model"
    )
    by_actor: Dict[str, int] = Field(
        default_factory=dict, description="Discarded records per actor"
    )

    def add_model(self, model_name: str, kept: int, discarded: int) -> None:
        """Add one model's counts to the report."""
        self.total_kept += kept
        self.total_discarded += discarded
        self.by_model[model_name] = {"kept": kept, "discarded": discarded}

    def add_actor(self, actor: Optional[object], count: int) -> None:
        """Add discards attributed to ``actor``."""
        key = str(actor) if actor is not None else "unknown"
        if key not in self.by_actor:
            self.by_actor[key] = 0
        self.by_actor[key] += count
