"""
Standard Rules - a schema-gated rule engine

Build an Engine from initial state, helpers, schemas and prioritized rules,
then create a Session per unit of work, insert facts and fire it.

License: Apache-2.0
"""

__version__ = "0.1.0"

from .config import EngineConfig
from .engine import Engine
from .exceptions import (
    AsynchronousValidatorError,
    EngineConfigurationError,
    FactValidationError,
    RuleEngineError,
    ValidatorError,
)
from .rules import DEFAULT_PRIORITY, Rule
from .session import BoundHelpers, ExecutionContext, Session
from .utils import init_rule_logging, merge_deep
from .validation import (
    CallableValidator,
    Issue,
    JSONSchemaValidator,
    PydanticValidator,
    ValidationResult,
    Validator,
    as_validator,
    standard_validate,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Engine",
    "EngineConfig",
    "Session",
    "ExecutionContext",
    "BoundHelpers",
    "Rule",
    "DEFAULT_PRIORITY",
    # Validation
    "Validator",
    "ValidationResult",
    "Issue",
    "PydanticValidator",
    "JSONSchemaValidator",
    "CallableValidator",
    "as_validator",
    "standard_validate",
    # Errors
    "RuleEngineError",
    "EngineConfigurationError",
    "ValidatorError",
    "AsynchronousValidatorError",
    "FactValidationError",
    # Utilities
    "merge_deep",
    "init_rule_logging",
]
