"""
Rule records and rule ordering.

Rules run in ascending priority; rules sharing a priority run in ascending
lexicographic name order. ``list.sort`` is stable, so rules that share both
priority and name keep their registration order.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .validation import Validator

DEFAULT_PRIORITY = 1

RuleHandler = Callable[[Any, Any], None]


@dataclass(frozen=True)
class Rule:
    """A named, prioritized handler, optionally gated by a schema."""
    name: str
    handler: RuleHandler
    priority: int = DEFAULT_PRIORITY
    schema: Optional[Validator] = None
    index: int = 0  # Registration sequence within the owning engine

    @property
    def has_schema(self) -> bool:
        return self.schema is not None

    def describe(self) -> str:
        """Human-readable one-line summary."""
        gate = type(self.schema).__name__ if self.schema is not None else "none"
        return f"{self.name} (priority={self.priority}, schema={gate})"


def rule_sort_key(rule: Rule) -> Tuple[int, str]:
    return (rule.priority, rule.name)


def sort_rules(rules: List[Rule]) -> List[Rule]:
    """Sort a rule list in place and return it."""
    rules.sort(key=rule_sort_key)
    return rules


def is_sorted(rules: Sequence[Rule]) -> bool:
    """Check the ordering invariant over a rule sequence."""
    return all(
        rule_sort_key(earlier) <= rule_sort_key(later)
        for earlier, later in zip(rules, rules[1:])
    )
