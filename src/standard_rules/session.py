"""
Sessions execute an engine's rules against a queue of facts.

A session owns one cloned state mapping. ``fire()`` walks the fact queue in
insertion order and, for each fact, every rule in the engine's sorted order.
Schema-gated rules only see facts their schema accepts, and receive the
schema's output rather than the raw fact.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .facts import freeze_fact
from .rules import Rule
from .validation import first_issue, standard_validate

logger = logging.getLogger(__name__)


class BoundHelpers:
    """
    Helper functions with the session state already supplied.

    A helper registered as ``fn(state, *args)`` is called from a handler as
    ``helpers.name(*args)`` or ``helpers["name"](*args)``.
    """

    def __init__(self, state: Dict[str, Any], helpers: Mapping[str, Callable[..., Any]]):
        self._bound: Dict[str, Callable[..., Any]] = {
            name: functools.partial(fn, state) for name, fn in helpers.items()
        }

    def __getitem__(self, name: str) -> Callable[..., Any]:
        return self._bound[name]

    def __getattr__(self, name: str) -> Callable[..., Any]:
        try:
            return self.__dict__["_bound"][name]
        except KeyError:
            raise AttributeError(f"No helper named '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._bound

    def __iter__(self) -> Iterator[str]:
        return iter(self._bound)

    def __len__(self) -> int:
        return len(self._bound)

    def __repr__(self) -> str:
        return f"BoundHelpers({', '.join(self._bound)})"


@dataclass(frozen=True)
class ExecutionContext:
    """Second argument of every rule handler."""
    state: Dict[str, Any]
    helpers: BoundHelpers


class Session:
    """
    One execution unit: a cloned state, the engine's rules and a fact queue.

    Sessions are created by ``Engine.create_session()`` and are meant to be
    used once: insert facts, fire, read ``state``.
    """

    def __init__(
        self,
        state: Dict[str, Any],
        rules: List[Rule],
        helpers: Optional[Mapping[str, Callable[..., Any]]] = None,
        freeze_facts: bool = True,
    ):
        self.state = state
        self._rules = rules
        self._freeze_facts = freeze_facts
        self._facts: List[Any] = []
        self.helpers = BoundHelpers(state, helpers or {})
        self._context = ExecutionContext(state=state, helpers=self.helpers)
        self.fire_count = 0

    @property
    def rules(self) -> List[Rule]:
        """The rule list this session iterates (shared with the engine by default)."""
        return self._rules

    @property
    def facts(self) -> Tuple[Any, ...]:
        return tuple(self._facts)

    def insert(self, fact: Any) -> "Session":
        self._facts.append(fact)
        return self

    def insert_many(self, facts: Iterable[Any]) -> "Session":
        self._facts.extend(facts)
        return self

    def fire(self) -> "Session":
        """
        Run every rule against every queued fact.

        Facts are processed in insertion order; all rules for one fact finish
        before the next fact starts. A rule whose schema rejects a fact is
        skipped for that fact. Exceptions raised by handlers or helpers
        propagate unchanged and stop processing.

        Returns:
            The session itself, for chaining

        Raises:
            AsynchronousValidatorError: If a rule's schema validates asynchronously
        """
        self.fire_count += 1
        invocations = 0
        skipped = 0

        for position, fact in enumerate(self._facts):
            if self._freeze_facts:
                fact = freeze_fact(fact)
                self._facts[position] = fact

            # Not a snapshot: rules registered mid-fire are picked up
            for rule in self._rules:
                if rule.schema is None:
                    rule.handler(fact, self._context)
                    invocations += 1
                    continue

                result = standard_validate(rule.schema, fact)
                if not result.success:
                    skipped += 1
                    logger.debug(
                        f"Skipping rule '{rule.name}' for fact #{position}: {first_issue(result)}",
                        extra={"rule_name": rule.name},
                    )
                    continue

                rule.handler(result.data, self._context)
                invocations += 1

        logger.debug(
            f"Session fired ({self.fire_count}): {len(self._facts)} facts, "
            f"{invocations} rule invocations, {skipped} skipped"
        )
        return self

    def __repr__(self) -> str:
        return (
            f"Session(facts={len(self._facts)}, rules={len(self._rules)}, "
            f"fired={self.fire_count})"
        )
