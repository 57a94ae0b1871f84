"""
Types shared by every validator adapter.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Tuple, Union, runtime_checkable

from ..exceptions import FactValidationError

PathSegment = Union[str, int]


@dataclass(frozen=True)
class Issue:
    """A single reason a value failed validation."""
    message: str
    path: Tuple[PathSegment, ...] = ()

    def __str__(self) -> str:
        if self.path:
            return f"{'.'.join(map(str, self.path))}: {self.message}"
        return self.message


@dataclass(frozen=True)
class ValidationResult:
    """
    Uniform outcome of validating a fact.

    On success ``data`` holds the validator's output, which may differ from
    the input (coerced numbers, a pydantic model instance, defaults filled
    in). On failure ``issues`` is non-empty and ``data`` is None.
    """
    success: bool
    data: Any = None
    issues: Tuple[Issue, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.success and not self.issues:
            raise ValueError("A failed ValidationResult needs at least one issue")

    @classmethod
    def ok(cls, data: Any) -> "ValidationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, *issues: Union[Issue, str]) -> "ValidationResult":
        normalized = tuple(
            issue if isinstance(issue, Issue) else Issue(str(issue)) for issue in issues
        )
        return cls(success=False, issues=normalized)

    def unwrap(self) -> Any:
        """Return the validated data or raise FactValidationError."""
        if self.success:
            return self.data
        summary = "; ".join(str(issue) for issue in self.issues)
        raise FactValidationError(f"Validation failed: {summary}", issues=self.issues)


@runtime_checkable
class Validator(Protocol):
    """Capability every schema must provide to gate a rule."""

    def validate(self, value: Any) -> ValidationResult:
        """
        Validate a value synchronously.

        Args:
            value: The fact being checked

        Returns:
            ValidationResult carrying either the (possibly transformed) output
            or the issues found
        """
        ...


def first_issue(result: ValidationResult) -> Optional[Issue]:
    """Return the first issue of a failed result, if any."""
    return result.issues[0] if result.issues else None
