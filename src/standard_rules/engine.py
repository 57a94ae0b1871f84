"""
Engine builder.

An Engine collects everything a session needs before any fact is seen:

- initial state, deep-merged from ``context()`` calls and composed engines
- a global schema applied to rules registered after it is set
- helper functions that receive the session state as first argument
- the rule list, kept sorted by (priority, name) after each registration

Every builder method mutates the engine and returns it, so configuration
reads as one chained expression::

    engine = (
        Engine()
        .context("fines", 0)
        .helper("add_fine", lambda state, amount: state.update(fines=state["fines"] + amount))
        .rule("speeding", lambda fact, ctx: ctx.helpers.add_fine(fact.fine), schema=Violation)
    )
    state = engine.create_session().insert(fact).fire().state
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .config import EngineConfig
from .exceptions import EngineConfigurationError
from .rules import Rule, RuleHandler, sort_rules
from .session import Session
from .utils import clone_state, merge_deep
from .validation import Validator, as_validator

logger = logging.getLogger(__name__)

_MISSING = object()


class Engine:
    """
    Declarative builder for rule sessions.

    Accepted ``context`` keys are whatever the caller seeds; rule handlers and
    helpers read and write them by name on ``ctx.state``. Nothing about the
    state's shape is checked.
    """

    def __init__(self, name: Optional[str] = None, config: Optional[EngineConfig] = None):
        self.name = name
        self.config = config or EngineConfig()
        self._initial_state: Dict[str, Any] = {}
        self._rules: List[Rule] = []
        self._global_schema: Optional[Validator] = None
        self._helpers: Dict[str, Callable[..., Any]] = {}
        self._registered = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return tuple(self._rules)

    @property
    def helpers(self) -> Dict[str, Callable[..., Any]]:
        return dict(self._helpers)

    @property
    def initial_state(self) -> Dict[str, Any]:
        return clone_state(self._initial_state)

    @property
    def global_schema(self) -> Optional[Validator]:
        return self._global_schema

    # ------------------------------------------------------------------
    # Builder
    # ------------------------------------------------------------------

    def context(self, name_or_mapping: Union[str, Mapping[str, Any]], value: Any = _MISSING) -> "Engine":
        """
        Deep-merge values into the initial state.

        Call as ``context("key", value)`` or ``context({"key": value, ...})``.
        Colliding mappings are merged recursively; any other colliding value
        is replaced by the incoming one.

        Raises:
            EngineConfigurationError: If the arguments match neither form
        """
        if value is _MISSING and isinstance(name_or_mapping, Mapping):
            incoming = dict(name_or_mapping)
        elif value is not _MISSING and isinstance(name_or_mapping, str):
            incoming = {name_or_mapping: value}
        else:
            raise EngineConfigurationError(
                "context() takes a mapping, or a string key and a value",
                config_field="context",
                config_value=name_or_mapping,
            )

        merge_deep(self._initial_state, copy.deepcopy(incoming), override=True)
        return self

    def schema(self, schema: Any) -> "Engine":
        """
        Set the schema for rules registered from now on that bring none of their own.

        Rules registered earlier keep the schema they captured. ``schema(None)``
        clears the global schema.
        """
        self._global_schema = as_validator(schema)
        logger.debug(f"Engine {self._label()} global schema set to {self._global_schema!r}")
        return self

    def helper(self, name: str, fn: Callable[..., Any]) -> "Engine":
        """
        Register a helper ``fn(state, *args, **kwargs)``.

        Handlers call it as ``ctx.helpers.<name>(*args, **kwargs)``; the
        session supplies ``state``. Re-registering a name replaces the helper.
        """
        if not isinstance(name, str) or not name:
            raise EngineConfigurationError(
                "Helper name must be a non-empty string",
                config_field="name",
                config_value=name,
            )
        if not callable(fn):
            raise EngineConfigurationError(
                f"Helper '{name}' must be callable",
                config_field="fn",
                config_value=fn,
            )

        self._helpers[name] = fn
        return self

    def rule(
        self,
        name: str,
        handler: RuleHandler,
        *,
        schema: Any = None,
        priority: Optional[int] = None,
    ) -> "Engine":
        """
        Register a rule and re-sort the rule list.

        Args:
            name: Rule name, used as the tie-break between equal priorities
            handler: Called as ``handler(fact, ctx)``; ``ctx.state`` and
                ``ctx.helpers`` belong to the running session
            schema: Schema for this rule; defaults to the engine's current
                global schema
            priority: Lower runs first; defaults to ``config.default_priority``

        Raises:
            EngineConfigurationError: On a non-callable handler, a non-integer
                priority or an unsupported schema
        """
        if not isinstance(name, str):
            raise EngineConfigurationError(
                "Rule name must be a string",
                config_field="name",
                config_value=name,
            )
        if not callable(handler):
            raise EngineConfigurationError(
                f"Rule '{name}' handler must be callable",
                rule_name=name,
                config_field="handler",
                config_value=handler,
            )
        if priority is None:
            priority = self.config.default_priority
        elif isinstance(priority, bool) or not isinstance(priority, int):
            raise EngineConfigurationError(
                f"Rule '{name}' priority must be an int",
                rule_name=name,
                config_field="priority",
                config_value=priority,
            )

        validator = as_validator(schema)
        if validator is None:
            validator = self._global_schema

        self._registered += 1
        self._rules.append(
            Rule(
                name=name,
                handler=handler,
                priority=priority,
                schema=validator,
                index=self._registered,
            )
        )
        sort_rules(self._rules)

        logger.debug(
            f"Registered rule '{name}' (priority={priority}, "
            f"schema={type(validator).__name__ if validator is not None else None}) on {self._label()}",
            extra={"rule_name": name},
        )
        return self

    def use(self, other: "Engine") -> "Engine":
        """
        Compose another engine into this one.

        The other engine's rules are appended after this engine's (not
        re-sorted unless ``config.resort_on_use``), its initial state and
        helpers are deep-merged in with the other engine winning collisions.
        Its global schema is not adopted.
        """
        if not isinstance(other, Engine):
            raise EngineConfigurationError(
                f"use() expects an Engine, got {type(other).__name__}",
                config_field="use",
                config_value=other,
            )
        if other is self:
            raise EngineConfigurationError(
                "An engine cannot be composed into itself",
                config_field="use",
            )

        # A new list: sessions created before this call keep the old one
        self._rules = self._rules + other._rules
        if self.config.resort_on_use:
            sort_rules(self._rules)

        merge_deep(self._initial_state, copy.deepcopy(other._initial_state))
        merge_deep(self._helpers, other._helpers)

        logger.debug(
            f"Engine {self._label()} now uses {other._label()}: "
            f"{len(other._rules)} rules, {len(other._helpers)} helpers"
        )
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def create_session(self) -> Session:
        """
        Start a session with a deep copy of the initial state.

        The session sees the engine's live rule list, so rules registered later
        on this engine also run in it, unless ``config.isolate_sessions`` is set.
        """
        rules = list(self._rules) if self.config.isolate_sessions else self._rules
        session = Session(
            clone_state(self._initial_state),
            rules,
            self._helpers,
            freeze_facts=self.config.freeze_facts,
        )
        logger.debug(f"Created session from {self._label()} with {len(rules)} rules")
        return session

    def run(self, *facts: Any) -> Dict[str, Any]:
        """Fire a fresh session over ``facts`` and return its state."""
        return self.create_session().insert_many(facts).fire().state

    def _label(self) -> str:
        return self.name or f"<engine {id(self):#x}>"

    def __repr__(self) -> str:
        return (
            f"Engine(name={self.name!r}, rules={len(self._rules)}, "
            f"helpers={len(self._helpers)}, state_keys={list(self._initial_state)})"
        )
