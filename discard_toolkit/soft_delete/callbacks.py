"""
Callback pipeline for discard transitions.

Hooks are registered per model in four slots: ``before_discard``,
``after_discard``, ``before_undiscard`` and ``after_undiscard``. Each hook is
called with the record. A before-hook vetoes the transition by returning
``HookResult.ABORT`` or by calling :func:`abort`; the vetoed transition reports
``TransitionResult.NOT_PERFORMED`` and nothing is written.

Methods are registered with the slot decorators::

    class Post(Base, DiscardMixin):
        @before_discard
        def check_not_pinned(self):
            if self.pinned:
                return HookResult.ABORT

        @after_discard
        def discard_comments(self):
            discard_all(self.comments)
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, NoReturn, Optional, Tuple

from .exceptions import DiscardError
from .models import HookResult, TransitionKind, TransitionResult

logger = logging.getLogger(__name__)

HOOK_SLOTS = ("before_discard", "after_discard", "before_undiscard", "after_undiscard")

Hook = Callable[[Any], Optional[HookResult]]


class Abort(Exception):
    """Control-flow signal raised by :func:`abort` inside a before-hook."""


def abort() -> NoReturn:
    """
    Veto the transition currently running its before-hooks.

    Called from an after-hook it raises DiscardError instead, and the
    transition's SAVEPOINT is rolled back.
    """
    raise Abort()


class MethodHook:
    """Hook that calls a method of the record by name.

    Looking the method up on each call lets subclasses override it and lets
    tests patch it on a single instance.
    """

    __slots__ = ("method_name",)

    def __init__(self, method_name: str):
        self.method_name = method_name

    def __call__(self, entity: Any) -> Optional[HookResult]:
        return getattr(entity, self.method_name)()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MethodHook) and other.method_name == self.method_name

    def __hash__(self) -> int:
        return hash(self.method_name)

    def __repr__(self) -> str:
        return f"MethodHook({self.method_name!r})"


def _mark(slot: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        fn.__discard_hooks__ = getattr(fn, "__discard_hooks__", ()) + (slot,)  # type: ignore[attr-defined]
        return fn

    return decorator


before_discard = _mark("before_discard")
after_discard = _mark("after_discard")
before_undiscard = _mark("before_undiscard")
after_undiscard = _mark("after_undiscard")


class CallbackRegistry:
    """Ordered hooks per slot for one model."""

    def __init__(self, hooks: Optional[Dict[str, Iterable[Hook]]] = None):
        self._hooks: Dict[str, List[Hook]] = {slot: [] for slot in HOOK_SLOTS}
        for slot, slot_hooks in (hooks or {}).items():
            for hook in slot_hooks:
                self.register(slot, hook)

    @classmethod
    def for_class(
        cls, namespace: Dict[str, Any], parent: Optional["CallbackRegistry"] = None
    ) -> "CallbackRegistry":
        """
        Build the registry for a class being defined.

        Args:
            namespace: The class ``__dict__``, in definition order
            parent: Registry inherited from the base class, if any

        Returns:
            A new registry holding the parent's hooks followed by the class's
            own decorated methods
        """
        registry = parent.copy() if parent is not None else cls()

        for name, member in namespace.items():
            for slot in getattr(member, "__discard_hooks__", ()):
                hook = MethodHook(name)
                # An override of an inherited hook method keeps its position
                if hook not in registry._hooks[slot]:
                    registry.register(slot, hook)

        return registry

    def register(self, slot: str, hook: Hook) -> None:
        """Append ``hook`` to ``slot``."""
        if slot not in self._hooks:
            raise ValueError(
                f"Unknown hook slot {slot!r}; expected one of {', '.join(HOOK_SLOTS)}"
            )
        if not callable(hook):
            raise TypeError(f"Hook for {slot} must be callable, got {hook!r}")
        self._hooks[slot].append(hook)

    def hooks(self, slot: str) -> Tuple[Hook, ...]:
        return tuple(self._hooks[slot])

    def copy(self) -> "CallbackRegistry":
        return CallbackRegistry(self._hooks)

    def run(
        self, kind: TransitionKind, entity: Any, body: Callable[[], Any]
    ) -> TransitionResult:
        """
        Run ``body`` wrapped in the hooks registered for ``kind``.

        Args:
            kind: Transition being attempted
            entity: Record passed to every hook
            body: The mutation and write; its exceptions propagate unchanged

        Returns:
            PERFORMED when body ran, NOT_PERFORMED when a before-hook vetoed it
        """
        for hook in self._hooks[f"before_{kind.value}"]:
            try:
                outcome = hook(entity)
            except Abort:
                outcome = HookResult.ABORT

            if outcome is HookResult.ABORT:
                logger.debug(
                    f"{kind.value} of {entity.__class__.__name__} aborted by {hook!r}"
                )
                return TransitionResult.NOT_PERFORMED

        body()

        for hook in self._hooks[f"after_{kind.value}"]:
            try:
                hook(entity)
            except Abort:
                raise DiscardError(
                    f"abort() called from after_{kind.value} hook {hook!r}; "
                    "only before hooks can veto a transition"
                ) from None

        return TransitionResult.PERFORMED
