"""
Discard and undiscard transitions.

A record is *kept* while its marker column is NULL and *discarded* once the
marker holds a timestamp. Asking for a transition that does not apply (discard
a discarded record, undiscard a kept one) is a no-op: no hooks run, nothing is
written and ``TransitionResult.NOT_PERFORMED`` is returned.

Each performed transition runs inside its own SAVEPOINT:

    before hooks -> mutate + flush (mapper events fire here) -> after hooks

Failures of the write propagate unchanged; they are never reported as
NOT_PERFORMED.
"""

import logging
from typing import Any

from .exceptions import RecordNotDiscarded, RecordNotUndiscarded
from .fields import actor_identity
from .models import TransitionKind, TransitionResult, utcnow
from .persistence import SessionPersistence, persistence_for

logger = logging.getLogger(__name__)


def is_discarded(entity: Any) -> bool:
    """True when the record's marker column holds a value."""
    return entity.discard_fields().marker.get(entity) is not None


def discard(entity: Any, actor: Any = None) -> TransitionResult:
    """
    Discard a kept record.

    Args:
        entity: Record to discard
        actor: Who is discarding it; stored when a discarded-by field is configured

    Returns:
        PERFORMED, or NOT_PERFORMED if already discarded or vetoed by a hook
    """
    if is_discarded(entity):
        logger.debug(f"{_describe(entity)} is already discarded")
        return TransitionResult.NOT_PERFORMED

    fields = entity.discard_fields()
    persistence = persistence_for(entity)

    def body() -> None:
        if fields.lock is not None:
            fields.lock.set(entity, persistence.identity_of(entity))
        fields.marker.set(entity, utcnow())
        if fields.discarded_by is not None:
            fields.discarded_by.set(entity, actor_identity(actor))
        persistence.persist(
            entity, fields.names, skip_validation=fields.skips_validation
        )

    return _transition(TransitionKind.DISCARD, entity, persistence, body)


def undiscard(entity: Any) -> TransitionResult:
    """
    Undiscard a discarded record.

    Returns:
        PERFORMED, or NOT_PERFORMED if the record is kept or a hook vetoed it
    """
    if not is_discarded(entity):
        logger.debug(f"{_describe(entity)} is not discarded")
        return TransitionResult.NOT_PERFORMED

    fields = entity.discard_fields()
    persistence = persistence_for(entity)

    def body() -> None:
        fields.marker.set(entity, None)
        if fields.discarded_by is not None:
            fields.discarded_by.set(entity, None)
        if fields.lock is not None:
            fields.lock.set(entity, fields.lock_neutral_value)
        persistence.persist(
            entity, fields.names, skip_validation=fields.skips_validation
        )

    return _transition(TransitionKind.UNDISCARD, entity, persistence, body)


def discard_or_raise(entity: Any, actor: Any = None) -> TransitionResult:
    """
    Discard a record, raising if it was not discarded.

    Raises:
        RecordNotDiscarded: The record was already discarded or a hook vetoed it
    """
    was_discarded = is_discarded(entity)
    result = discard(entity, actor)
    if not result:
        message = (
            "A discarded record cannot be discarded"
            if was_discarded
            else "Failed to discard the record"
        )
        raise RecordNotDiscarded(message, entity)
    return result


def undiscard_or_raise(entity: Any) -> TransitionResult:
    """
    Undiscard a record, raising if it was not undiscarded.

    Raises:
        RecordNotUndiscarded: The record was kept or a hook vetoed it
    """
    was_kept = not is_discarded(entity)
    result = undiscard(entity)
    if not result:
        message = (
            "An undiscarded record cannot be undiscarded"
            if was_kept
            else "Failed to undiscard the record"
        )
        raise RecordNotUndiscarded(message, entity)
    return result


def _transition(
    kind: TransitionKind,
    entity: Any,
    persistence: SessionPersistence,
    body: Any,
) -> TransitionResult:
    description = _describe(entity)
    try:
        with persistence.within_transaction():
            result = entity.discard_callbacks().run(kind, entity, body)
    except Exception as e:
        logger.warning(f"Failed to {kind.value} {description}: {e}")
        raise

    if result:
        logger.debug(f"{kind.value} performed on {description}")
    return result


def _describe(entity: Any) -> str:
    return f"{entity.__class__.__name__} {getattr(entity, 'id', 'unknown')}"
