"""
Rule Engine Exception Hierarchy

This module defines the exceptions raised by the rule engine. Data errors
(a fact that does not satisfy a rule's schema) are never raised during
``Session.fire()``; the rule is simply skipped. The exceptions below cover
programmer errors:

1. Invalid builder configuration (bad handler, bad schema, bad priority)
2. Misbehaving validators (asynchronous results, wrong result type)
3. Explicit unwrapping of a failed validation result

Exceptions raised inside rule handlers or helpers are never wrapped; they
propagate out of ``fire()`` unmodified.
"""

import time
from typing import Any, Dict, Optional, Sequence


class RuleEngineError(Exception):
    """
    Base exception class for all rule engine errors.

    Attributes:
        error_code: Unique error code for programmatic handling
        rule_name: Name of the rule involved (if applicable)
        timestamp: When the error occurred
        context: Additional context information
        user_message: User-friendly error message
        developer_message: Detailed technical error message
        suggestion: Suggested fix or next steps (if applicable)
    """

    def __init__(
        self,
        message: str,
        error_code: str = "RULE_ENGINE_ERROR",
        rule_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.rule_name = rule_name
        self.timestamp = time.time()
        self.context = context or {}
        self.user_message = user_message or message
        self.developer_message = message
        self.suggestion = suggestion

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.developer_message,
            "user_message": self.user_message,
            "rule_name": self.rule_name,
            "timestamp": self.timestamp,
            "context": self.context,
            "suggestion": self.suggestion,
        }

    def __str__(self) -> str:
        parts = [f"[{self.error_code}]"]
        if self.rule_name:
            parts.append(f"Rule:{self.rule_name}")
        parts.append(self.developer_message)
        return " ".join(parts)


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class EngineConfigurationError(RuleEngineError):
    """
    Raised when an engine is configured with invalid arguments.

    Examples:
    - Non-callable rule handler or helper
    - Non-integer rule priority
    - A schema object no validator adapter understands
    - Composing an engine into itself
    """

    def __init__(
        self,
        message: str,
        config_field: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        self.config_field = config_field
        self.config_value = config_value

        context = kwargs.pop("context", None) or {}
        if config_field:
            context["config_field"] = config_field
        if config_value is not None:
            context["config_value"] = repr(config_value)

        kwargs.setdefault("user_message", "The rule engine configuration is invalid.")
        kwargs.setdefault(
            "suggestion", "Check the arguments passed to the engine builder methods."
        )
        super().__init__(
            message,
            error_code="ENGINE_CONFIGURATION_ERROR",
            context=context,
            **kwargs
        )


# =============================================================================
# VALIDATOR ERRORS
# =============================================================================

class ValidatorError(RuleEngineError):
    """Raised when a validator violates the synchronous result contract."""

    def __init__(self, message: str, validator: Optional[Any] = None, **kwargs):
        self.validator = validator

        error_code = kwargs.pop("error_code", "VALIDATOR_ERROR")
        context = kwargs.pop("context", None) or {}
        if validator is not None:
            context["validator"] = type(validator).__name__

        super().__init__(message, error_code=error_code, context=context, **kwargs)


class AsynchronousValidatorError(ValidatorError):
    """
    Raised when a validator returns an awaitable instead of a result.

    Fact validation runs inside a synchronous ``fire()`` loop, so an
    asynchronous schema is a configuration mistake rather than a data error.
    """

    def __init__(self, message: str = "Fact validation must be synchronous", **kwargs):
        kwargs.setdefault(
            "suggestion",
            "Use a schema without async refinements or validate the facts before inserting them.",
        )
        super().__init__(message, error_code="ASYNC_VALIDATOR_ERROR", **kwargs)


class FactValidationError(RuleEngineError):
    """Raised by ``ValidationResult.unwrap()`` when the result is a failure."""

    def __init__(self, message: str, issues: Sequence[Any] = (), **kwargs):
        self.issues = tuple(issues)

        context = kwargs.pop("context", None) or {}
        context["issues"] = [str(issue) for issue in self.issues]

        super().__init__(
            message,
            error_code="FACT_VALIDATION_ERROR",
            context=context,
            **kwargs
        )
