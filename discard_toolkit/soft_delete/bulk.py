"""
Bulk discard and undiscard.

Each function accepts either a session plus a ``Select`` or any iterable of
records (a relationship collection, a list of query results). Only records the
transition applies to are visited: ``discard_all`` skips discarded records and
``undiscard_all`` skips kept ones. Every record is transitioned in its own
SAVEPOINT, so a failure part-way leaves earlier records transitioned.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Union

from sqlalchemy import Select
from sqlalchemy.orm import Session

from . import engine, scopes

logger = logging.getLogger(__name__)

Source = Union[Session, Iterable[Any]]


def _is_kept(record: Any) -> bool:
    return not engine.is_discarded(record)


def _collect(
    source: Source,
    statement: Optional[Select[Any]],
    scope: Callable[[Select[Any]], Select[Any]],
    applies: Callable[[Any], bool],
) -> List[Any]:
    if isinstance(source, Session):
        if statement is None:
            raise ValueError("A statement is required when passing a session")
        return list(source.scalars(scope(statement)).all())

    if statement is not None:
        raise ValueError("A statement can only be combined with a session")
    return [record for record in source if applies(record)]


def discard_all(
    source: Source, statement: Optional[Select[Any]] = None, actor: Any = None
) -> List[Any]:
    """
    Discard every kept record in ``source``.

    Args:
        source: A session (with ``statement``) or an iterable of records
        statement: Select to run against the session
        actor: Passed on to each discard

    Returns:
        The records that were visited
    """
    records = _collect(source, statement, scopes.kept, _is_kept)
    for record in records:
        engine.discard(record, actor)
    logger.info(f"discard_all visited {len(records)} record(s)")
    return records


def undiscard_all(
    source: Source, statement: Optional[Select[Any]] = None
) -> List[Any]:
    """Undiscard every discarded record in ``source``; returns the records visited."""
    records = _collect(source, statement, scopes.discarded, engine.is_discarded)
    for record in records:
        engine.undiscard(record)
    logger.info(f"undiscard_all visited {len(records)} record(s)")
    return records


def discard_all_or_raise(
    source: Source, statement: Optional[Select[Any]] = None, actor: Any = None
) -> List[Any]:
    """
    Strict ``discard_all``: stops at the first record that is not discarded.

    Raises:
        RecordNotDiscarded: A hook vetoed one of the discards
    """
    records = _collect(source, statement, scopes.kept, _is_kept)
    for record in records:
        engine.discard_or_raise(record, actor)
    logger.info(f"discard_all_or_raise discarded {len(records)} record(s)")
    return records


def undiscard_all_or_raise(
    source: Source, statement: Optional[Select[Any]] = None
) -> List[Any]:
    """
    Strict ``undiscard_all``: stops at the first record that is not undiscarded.

    Raises:
        RecordNotUndiscarded: A hook vetoed one of the undiscards
    """
    records = _collect(source, statement, scopes.discarded, engine.is_discarded)
    for record in records:
        engine.undiscard_or_raise(record)
    logger.info(f"undiscard_all_or_raise undiscarded {len(records)} record(s)")
    return records
