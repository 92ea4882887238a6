"""
Soft Delete Module - discard records instead of deleting them.

Provides the discard/undiscard state machine, its hooks, query scopes and bulk
operations for SQLAlchemy models.
"""

from .bulk import (
    discard_all,
    discard_all_or_raise,
    undiscard_all,
    undiscard_all_or_raise,
)
from .callbacks import (
    Abort,
    CallbackRegistry,
    abort,
    after_discard,
    after_undiscard,
    before_discard,
    before_undiscard,
)
from .engine import discard, discard_or_raise, undiscard, undiscard_or_raise
from .exceptions import (
    DiscardError,
    PersistenceError,
    RecordInvalid,
    RecordNotDiscarded,
    RecordNotUndiscarded,
    SessionNotFound,
)
from .fields import DiscardFields, FieldAccessor
from .mixins import DiscardMixin, DiscardTimestampMixin
from .models import DiscardReport, DiscardSettings, HookResult, TransitionResult
from .persistence import SessionPersistence
from .scopes import (
    discarded,
    discarded_by,
    kept,
    register_default_scope,
    undiscarded,
    with_discarded,
)
from .services import DiscardService

__all__ = [
    # Mixins
    "DiscardMixin",
    "DiscardTimestampMixin",
    # Services
    "DiscardService",
    # Transitions
    "discard",
    "undiscard",
    "discard_or_raise",
    "undiscard_or_raise",
    "discard_all",
    "undiscard_all",
    "discard_all_or_raise",
    "undiscard_all_or_raise",
    # Hooks
    "before_discard",
    "after_discard",
    "before_undiscard",
    "after_undiscard",
    "abort",
    "Abort",
    "CallbackRegistry",
    "HookResult",
    # Scopes
    "kept",
    "undiscarded",
    "discarded",
    "with_discarded",
    "discarded_by",
    "register_default_scope",
    # Models
    "DiscardSettings",
    "DiscardFields",
    "FieldAccessor",
    "DiscardReport",
    "TransitionResult",
    "SessionPersistence",
    # Exceptions
    "DiscardError",
    "RecordNotDiscarded",
    "RecordNotUndiscarded",
    "PersistenceError",
    "RecordInvalid",
    "SessionNotFound",
]
