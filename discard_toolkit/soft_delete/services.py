"""
Service layer for discard operations.

Binds the discard operations to one session and adds reporting across models.
"""

import logging
from typing import Any, List, Type, Union

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from . import bulk, engine, scopes
from .exceptions import DiscardError
from .models import DiscardReport, TransitionResult

logger = logging.getLogger(__name__)

Target = Union[Type[Any], Select[Any]]


class DiscardService:
    """
    Service for discarding and undiscarding records through one session.

    Records passed in are added to the session if they are not attached yet.
    Committing stays with the caller; each transition only releases its own
    SAVEPOINT.
    """

    def __init__(self, session: Session):
        """
        Initialize the discard service.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session

    def discard(self, entity: Any, actor: Any = None) -> TransitionResult:
        return engine.discard(self._attach(entity), actor)

    def undiscard(self, entity: Any) -> TransitionResult:
        return engine.undiscard(self._attach(entity))

    def discard_or_raise(self, entity: Any, actor: Any = None) -> TransitionResult:
        return engine.discard_or_raise(self._attach(entity), actor)

    def undiscard_or_raise(self, entity: Any) -> TransitionResult:
        return engine.undiscard_or_raise(self._attach(entity))

    def discard_all(self, target: Target, actor: Any = None) -> List[Any]:
        """
        Discard every kept record of a model or statement.

        Args:
            target: A discardable model class or a Select of one
            actor: Passed on to each discard

        Returns:
            The records that were visited
        """
        return bulk.discard_all(self.session, self._statement(target), actor)

    def undiscard_all(self, target: Target) -> List[Any]:
        """Undiscard every discarded record of a model or statement."""
        return bulk.undiscard_all(self.session, self._statement(target))

    def discard_all_or_raise(self, target: Target, actor: Any = None) -> List[Any]:
        return bulk.discard_all_or_raise(self.session, self._statement(target), actor)

    def undiscard_all_or_raise(self, target: Target) -> List[Any]:
        return bulk.undiscard_all_or_raise(self.session, self._statement(target))

    def generate_report(self, *models: Type[Any]) -> DiscardReport:
        """
        Count kept and discarded records of each model.

        Default scopes are lifted, so every row is counted.

        Args:
            *models: Discardable model classes

        Returns:
            Report with totals per model and discards per actor
        """
        report = DiscardReport()

        for model in models:
            if not hasattr(model, "discard_fields"):
                raise DiscardError(f"{model.__name__} is not discardable")

            count = select(func.count()).select_from(model)
            kept = self.session.scalar(scopes.with_discarded(scopes.kept(count, model)))
            discarded = self.session.scalar(
                scopes.with_discarded(scopes.discarded(count, model))
            )
            report.add_model(model.__name__, kept or 0, discarded or 0)

            accessor = model.discard_fields().discarded_by
            if accessor is None:
                continue

            column = accessor.column(model)
            by_actor = scopes.discarded(
                select(column, func.count()).select_from(model), model
            ).group_by(column)
            for actor, actor_count in self.session.execute(
                scopes.with_discarded(by_actor)
            ):
                report.add_actor(actor, actor_count)

        logger.info(
            f"Discard report: {report.total_kept} kept, "
            f"{report.total_discarded} discarded across {len(models)} model(s)"
        )
        return report

    def _attach(self, entity: Any) -> Any:
        if entity not in self.session:
            self.session.add(entity)
        return entity

    def _statement(self, target: Target) -> Select[Any]:
        if isinstance(target, Select):
            return target
        if hasattr(target, "discard_fields"):
            return select(target)
        raise DiscardError(f"{target!r} is neither a discardable model nor a Select")
