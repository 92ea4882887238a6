"""
SQLAlchemy mixins for discard functionality.

These mixins give declarative models the discard state machine, its hooks and
its query scopes.
"""

from datetime import datetime
from typing import Any, ClassVar, List, Optional

from sqlalchemy import DateTime, Select, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from ..config import get_config
from . import bulk, engine, scopes
from .callbacks import CallbackRegistry, Hook
from .exceptions import DiscardError
from .fields import DiscardFields
from .models import DiscardSettings, TransitionResult


class DiscardMixin:
    """
    Mixin to add discard functionality to SQLAlchemy models.

    The model declares the marker column itself; its name defaults to the
    configured ``discard_column`` (``discarded_at`` out of the box) and can be
    changed per model through ``__discard__``.

    Usage:
        class Post(Base, DiscardMixin):
            __tablename__ = 'posts'
            id = Column(Integer, primary_key=True)
            title = Column(String)
            discarded_at = Column(DateTime, nullable=True)

        class Account(Base, DiscardMixin):
            __tablename__ = 'accounts'
            __discard__ = DiscardSettings(
                marker_field='deleted_at',
                discarded_by_field='deleted_by',
                lock_field='discard_lock',
            )
            ...

        post.discard()                        # TransitionResult.PERFORMED
        session.scalars(Post.kept()).all()    # kept posts only
    """

    __discard__: ClassVar[DiscardSettings] = DiscardSettings()

    _discard_fields: ClassVar[DiscardFields]
    _discard_callbacks: ClassVar[CallbackRegistry]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        settings = cls.__discard__
        if settings.marker_field is None:
            inherited = _inherited_marker(cls)
            if inherited is not None:
                settings = settings.model_copy(update={"marker_field": inherited})
        settings = settings.resolve(get_config())

        clashes = sorted(
            name
            for name in (
                settings.marker_field,
                settings.discarded_by_field,
                settings.lock_field,
            )
            if name in _RESERVED_NAMES
        )
        if clashes:
            raise DiscardError(
                f"{cls.__name__} cannot use {', '.join(clashes)} as a discard "
                "field; the name is taken by a DiscardMixin method"
            )

        cls._discard_fields = DiscardFields.from_settings(settings)
        cls._discard_callbacks = CallbackRegistry.for_class(
            dict(cls.__dict__), getattr(cls, "_discard_callbacks", None)
        )

    @classmethod
    def discard_fields(cls) -> DiscardFields:
        """Accessors for this model's marker, discarded-by and lock columns."""
        return cls._discard_fields

    @classmethod
    def discard_callbacks(cls) -> CallbackRegistry:
        """Hooks registered for this model."""
        return cls._discard_callbacks

    @classmethod
    def register_hook(cls, slot: str, hook: Hook) -> None:
        """
        Register a plain callable as a hook.

        Call this while setting up the model, not while transitions run.

        Args:
            slot: One of before_discard, after_discard, before_undiscard,
                after_undiscard
            hook: Called with the record; may return HookResult.ABORT
        """
        cls._discard_callbacks.register(slot, hook)

    # State

    @property
    def is_discarded(self) -> bool:
        return engine.is_discarded(self)

    @property
    def is_undiscarded(self) -> bool:
        return not engine.is_discarded(self)

    is_kept = is_undiscarded

    # Transitions

    def discard(self, actor: Any = None) -> TransitionResult:
        """
        Discard this record.

        Args:
            actor: Who is discarding it; stored when discarded_by_field is set

        Returns:
            PERFORMED, or NOT_PERFORMED if already discarded or vetoed by a hook
        """
        return engine.discard(self, actor)

    def discard_or_raise(self, actor: Any = None) -> TransitionResult:
        """
        Discard this record or raise.

        Raises:
            RecordNotDiscarded: Already discarded, or vetoed by a hook
        """
        return engine.discard_or_raise(self, actor)

    def undiscard(self) -> TransitionResult:
        """
        Undiscard this record.

        Returns:
            PERFORMED, or NOT_PERFORMED if the record is kept or a hook vetoed it
        """
        return engine.undiscard(self)

    def undiscard_or_raise(self) -> TransitionResult:
        """
        Undiscard this record or raise.

        Raises:
            RecordNotUndiscarded: Not discarded, or vetoed by a hook
        """
        return engine.undiscard_or_raise(self)

    def validate(self) -> List[str]:
        """
        Return validation errors that should block a write.

        Checked before transitions of models without a discarded-by or lock
        field. Override to add checks; the default reports none.
        """
        return []

    # Scopes

    @classmethod
    def kept(cls) -> Select[Any]:
        """Select kept records of this model."""
        return scopes.kept(select(cls), cls)

    @classmethod
    def undiscarded(cls) -> Select[Any]:
        return scopes.undiscarded(select(cls), cls)

    @classmethod
    def discarded(cls) -> Select[Any]:
        """Select discarded records (subject to any default scope)."""
        return scopes.discarded(select(cls), cls)

    @classmethod
    def with_discarded(cls) -> Select[Any]:
        """Select all records, lifting any default scope."""
        return scopes.with_discarded(select(cls))

    @classmethod
    def discarded_by_actor(cls, actor: Any) -> Select[Any]:
        """
        Select records discarded by ``actor``.

        Named apart from the usual ``discarded_by`` column so the column does
        not hide it.
        """
        return scopes.discarded_by(select(cls), actor, cls)

    # Bulk operations

    @classmethod
    def discard_all(
        cls,
        session: Session,
        statement: Optional[Select[Any]] = None,
        actor: Any = None,
    ) -> List[Any]:
        """
        Discard every kept record matched by ``statement``.

        Args:
            session: Session to query and write through
            statement: Select of this model; defaults to every record
            actor: Passed on to each discard

        Returns:
            The records that were visited
        """
        return bulk.discard_all(session, _or_all(cls, statement), actor)

    @classmethod
    def discard_all_or_raise(
        cls,
        session: Session,
        statement: Optional[Select[Any]] = None,
        actor: Any = None,
    ) -> List[Any]:
        return bulk.discard_all_or_raise(session, _or_all(cls, statement), actor)

    @classmethod
    def undiscard_all(
        cls, session: Session, statement: Optional[Select[Any]] = None
    ) -> List[Any]:
        """Undiscard every discarded record matched by ``statement``."""
        return bulk.undiscard_all(session, _or_all(cls, statement))

    @classmethod
    def undiscard_all_or_raise(
        cls, session: Session, statement: Optional[Select[Any]] = None
    ) -> List[Any]:
        return bulk.undiscard_all_or_raise(session, _or_all(cls, statement))


_RESERVED_NAMES = frozenset(
    name for name in vars(DiscardMixin) if not name.startswith("_")
)


class DiscardTimestampMixin(DiscardMixin):
    """
    DiscardMixin that also declares an indexed ``discarded_at`` column.

    Usage:
        class Note(Base, DiscardTimestampMixin):
            __tablename__ = 'notes'
            id = Column(Integer, primary_key=True)
    """

    __discard__ = DiscardSettings(marker_field="discarded_at")

    discarded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True, default=None
    )


def _or_all(model: Any, statement: Optional[Select[Any]]) -> Select[Any]:
    return statement if statement is not None else select(model)


def _inherited_marker(cls: type) -> Optional[str]:
    """Marker field declared explicitly by the nearest base class, if any."""
    for base in cls.__mro__[1:]:
        declared = base.__dict__.get("__discard__")
        if declared is not None and declared.marker_field:
            return declared.marker_field
    return None
