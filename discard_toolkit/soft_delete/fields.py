"""Accessors for the columns a discardable model exposes."""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Type

from .models import DiscardSettings


class FieldAccessor:
    """Read, write and query capability for one mapped attribute."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def get(self, entity: Any) -> Any:
        return getattr(entity, self.name)

    def set(self, entity: Any, value: Any) -> None:
        setattr(entity, self.name, value)

    def column(self, model: Type[Any]) -> Any:
        """Return the class-level attribute for building SQL expressions."""
        try:
            return getattr(model, self.name)
        except AttributeError:
            raise AttributeError(
                f"{model.__name__} has no mapped attribute {self.name!r}"
            ) from None

    def __repr__(self) -> str:
        return f"FieldAccessor({self.name!r})"


@dataclass(frozen=True)
class DiscardFields:
    """The accessors a model's transitions and scopes work through."""

    marker: FieldAccessor
    discarded_by: Optional[FieldAccessor] = None
    lock: Optional[FieldAccessor] = None
    lock_neutral_value: int = 0
    skips_validation: bool = False

    @classmethod
    def from_settings(cls, settings: DiscardSettings) -> "DiscardFields":
        """Build accessors from fully resolved settings."""
        if settings.marker_field is None:
            raise ValueError("Settings must be resolved before building accessors")

        return cls(
            marker=FieldAccessor(settings.marker_field),
            discarded_by=(
                FieldAccessor(settings.discarded_by_field)
                if settings.discarded_by_field
                else None
            ),
            lock=FieldAccessor(settings.lock_field) if settings.lock_field else None,
            lock_neutral_value=settings.lock_neutral_value or 0,
            skips_validation=settings.skips_validation,
        )

    @property
    def names(self) -> Tuple[str, ...]:
        """Names of every field a transition writes."""
        accessors = (self.marker, self.discarded_by, self.lock)
        return tuple(a.name for a in accessors if a is not None)


def actor_identity(actor: Any) -> Any:
    """Identity stored in the discarded-by column for ``actor``.

    Objects with an ``id`` attribute (mapped users, for instance) are stored by
    id; plain values are stored as given.
    """
    if actor is None:
        return None
    return getattr(actor, "id", actor)
