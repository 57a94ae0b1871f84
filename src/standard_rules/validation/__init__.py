"""
Validation module for gating rules on fact shape.
"""

from .adapters import (
    CallableValidator,
    JSONSchemaValidator,
    PydanticValidator,
    as_validator,
    standard_validate,
)
from .types import Issue, ValidationResult, Validator, first_issue

__all__ = [
    "Validator",
    "ValidationResult",
    "Issue",
    "first_issue",
    "PydanticValidator",
    "JSONSchemaValidator",
    "CallableValidator",
    "as_validator",
    "standard_validate",
]
