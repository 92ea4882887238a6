"""
SQLAlchemy persistence adapter used by discard transitions.

Transitions need only three things from the ORM: a transaction scope, a way to
write a record, and the record's primary key. :class:`SessionPersistence`
provides them on top of a :class:`~sqlalchemy.orm.Session`.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from sqlalchemy import inspect
from sqlalchemy.orm import Session, object_session

from .exceptions import RecordInvalid, SessionNotFound

logger = logging.getLogger(__name__)


class SessionPersistence:
    """Persistence contract backed by a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def within_transaction(self) -> Iterator[None]:
        """
        Run the enclosed block inside a SAVEPOINT.

        The savepoint is released when the block finishes and rolled back if it
        raises. On rollback SQLAlchemy expires the records modified inside it,
        so their attributes reload from the database on next access.
        """
        with self.session.begin_nested():
            yield

    def persist(
        self,
        entity: Any,
        fields_changed: Sequence[str],
        skip_validation: bool = False,
    ) -> None:
        """
        Write ``entity`` to the database.

        Args:
            entity: Record to write
            fields_changed: Names of the attributes the caller changed
            skip_validation: Write even if the record's validate() reports errors

        Raises:
            RecordInvalid: validate() returned errors and validation was not skipped
            sqlalchemy.exc.SQLAlchemyError: The flush failed
        """
        if not skip_validation:
            validate_record(entity)

        self.session.add(entity)
        self.session.flush()

        logger.debug(
            f"Flushed {entity.__class__.__name__} ({', '.join(fields_changed)})"
        )

    def identity_of(self, entity: Any) -> Any:
        """Return the primary key of ``entity``, flushing it first if pending."""
        state = inspect(entity)
        if state.identity is None:
            self.session.add(entity)
            self.session.flush()

        identity = state.identity
        if len(identity) != 1:
            raise ValueError(
                f"{entity.__class__.__name__} has a composite primary key; "
                "a uniqueness lock needs a single-column key"
            )
        return identity[0]


def validate_record(entity: Any) -> None:
    """Raise RecordInvalid if the record's validate() hook reports errors."""
    validate = getattr(entity, "validate", None)
    if validate is None:
        return

    errors = validate() or []
    if errors:
        raise RecordInvalid(entity, errors)


def persistence_for(entity: Any) -> SessionPersistence:
    """
    Return the persistence adapter for the session ``entity`` belongs to.

    Raises:
        SessionNotFound: The record is transient or detached
    """
    session = object_session(entity)
    if session is None:
        raise SessionNotFound(entity)
    return SessionPersistence(session)
