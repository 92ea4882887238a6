"""
Discard Toolkit - soft deletes for SQLAlchemy models.

Instead of removing rows, records are marked *discarded* by setting a
timestamp column. Discarded records can be hidden from queries, listed on their
own, and brought back.

Key Features
------------
* **Transitions**: ``discard`` / ``undiscard`` with strict ``*_or_raise`` variants
* **Hooks**: before/after hooks around each transition, with veto support
* **Scopes**: ``kept``, ``discarded``, ``with_discarded`` and ``discarded_by``
* **Bulk operations**: ``discard_all`` / ``undiscard_all`` over queries or collections
* **Uniqueness locks**: let a discarded row coexist with a new row under a unique index

Quick Start
-----------
>>> from discard_toolkit import DiscardMixin
>>>
>>> class Post(Base, DiscardMixin):
...     __tablename__ = "posts"
...     id = Column(Integer, primary_key=True)
...     discarded_at = Column(DateTime, nullable=True)
>>>
>>> post.discard()
<TransitionResult.PERFORMED: 'performed'>
>>> session.scalars(Post.kept()).all()
[]

License
-------
MIT License - See LICENSE file for details.
"""

__version__ = "1.0.0"

from .config import DiscardConfig, configure, get_config, set_config
from .soft_delete import (
    DiscardError,
    DiscardMixin,
    DiscardService,
    DiscardSettings,
    DiscardTimestampMixin,
    HookResult,
    RecordNotDiscarded,
    RecordNotUndiscarded,
    TransitionResult,
    abort,
    after_discard,
    after_undiscard,
    before_discard,
    before_undiscard,
    discard_all,
    discarded,
    kept,
    register_default_scope,
    undiscard_all,
    with_discarded,
)

__all__ = [
    # Soft Delete
    "DiscardMixin",
    "DiscardTimestampMixin",
    "DiscardService",
    "DiscardSettings",
    "TransitionResult",
    "HookResult",
    "before_discard",
    "after_discard",
    "before_undiscard",
    "after_undiscard",
    "abort",
    "discard_all",
    "undiscard_all",
    "kept",
    "discarded",
    "with_discarded",
    "register_default_scope",
    # Exceptions
    "DiscardError",
    "RecordNotDiscarded",
    "RecordNotUndiscarded",
    # Configuration
    "DiscardConfig",
    "configure",
    "get_config",
    "set_config",
]
