"""
Query scopes for discardable models.

Every scope takes a SQLAlchemy ``Select`` and returns a new one, so scopes
chain with each other and with ordinary ``where()`` calls::

    session.scalars(kept(select(Post).where(Post.author_id == 7)))
    session.scalars(Post.with_discarded().where(Post.title == "Draft"))

A host application may hide discarded rows from every query with
:func:`register_default_scope`. Only :func:`with_discarded` lifts that default;
the other scopes leave it in place. In particular ``discarded()`` on a model
with the default scope returns no rows, since both filters apply. Use
``with_discarded(discarded(stmt))`` to list discarded rows of such a model.
"""

from typing import Any, Callable, Optional, Type

from sqlalchemy import Select, event
from sqlalchemy.orm import ORMExecuteState, with_loader_criteria

from .exceptions import DiscardError
from .fields import actor_identity

WITH_DISCARDED = "with_discarded"


def _model_of(statement: Select[Any], model: Optional[Type[Any]]) -> Type[Any]:
    if model is not None:
        return model

    for description in statement.column_descriptions:
        entity = description.get("entity")
        if entity is not None and hasattr(entity, "discard_fields"):
            return entity

    raise DiscardError(
        "Cannot find a discardable model in the statement; pass model= explicitly"
    )


def undiscarded(
    statement: Select[Any], model: Optional[Type[Any]] = None
) -> Select[Any]:
    """Restrict ``statement`` to kept rows."""
    model = _model_of(statement, model)
    marker = model.discard_fields().marker.column(model)
    return statement.where(marker.is_(None))


kept = undiscarded


def discarded(
    statement: Select[Any], model: Optional[Type[Any]] = None
) -> Select[Any]:
    """Restrict ``statement`` to discarded rows."""
    model = _model_of(statement, model)
    marker = model.discard_fields().marker.column(model)
    return statement.where(marker.is_not(None))


def with_discarded(statement: Select[Any]) -> Select[Any]:
    """Lift registered default scopes so discarded rows are visible again."""
    return statement.execution_options(**{WITH_DISCARDED: True})


def discarded_by(
    statement: Select[Any], actor: Any, model: Optional[Type[Any]] = None
) -> Select[Any]:
    """Restrict ``statement`` to rows discarded by ``actor``."""
    model = _model_of(statement, model)
    accessor = model.discard_fields().discarded_by
    if accessor is None:
        raise DiscardError(f"{model.__name__} does not record who discarded it")
    return statement.where(accessor.column(model) == actor_identity(actor))


def register_default_scope(
    target: Any, *models: Type[Any]
) -> Callable[[ORMExecuteState], None]:
    """
    Hide discarded rows of ``models`` from every ORM query run through ``target``.

    Args:
        target: A Session, sessionmaker or Session subclass
        *models: Discardable models to scope

    Returns:
        The installed listener, for use with ``event.remove``
    """

    def apply_default_scope(execute_state: ORMExecuteState) -> None:
        if (
            not execute_state.is_select
            or execute_state.is_column_load
            or execute_state.is_relationship_load
            or execute_state.execution_options.get(WITH_DISCARDED, False)
        ):
            return

        for model in models:
            marker = model.discard_fields().marker.column(model)
            execute_state.statement = execute_state.statement.options(
                with_loader_criteria(model, marker.is_(None))
            )

    event.listen(target, "do_orm_execute", apply_default_scope)
    return apply_default_scope
