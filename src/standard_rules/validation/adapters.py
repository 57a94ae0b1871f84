"""
Validator adapters.

Each adapter wraps one schema library and translates its native result into
the uniform ``ValidationResult`` contract. ``as_validator`` picks the adapter
for whatever schema object a rule or engine was given, and
``standard_validate`` is the single entry point the session uses at fire time.
"""

import inspect
import typing
from typing import Any, Callable, Mapping, Optional

from jsonschema import SchemaError
from jsonschema.validators import validator_for
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.errors import PydanticSchemaGenerationError

from ..exceptions import (
    AsynchronousValidatorError,
    EngineConfigurationError,
    ValidatorError,
)
from ..facts import thaw_fact
from .types import Issue, ValidationResult, Validator


class PydanticValidator:
    """
    Validates facts with a pydantic model or any type pydantic can adapt.

    The output is pydantic's coerced value: a model instance for model
    classes, the converted Python value for everything else.
    """

    def __init__(self, target: Any):
        self.target = target
        if isinstance(target, TypeAdapter):
            self._validate = target.validate_python
        elif isinstance(target, type) and issubclass(target, BaseModel):
            self._validate = target.model_validate
        else:
            try:
                self._validate = TypeAdapter(target).validate_python
            except PydanticSchemaGenerationError as e:
                raise EngineConfigurationError(
                    f"Unsupported schema type: pydantic cannot validate {target!r}",
                    config_field="schema",
                    config_value=target,
                    suggestion="Use a pydantic model, a JSON Schema mapping or a callable",
                ) from e

    def validate(self, value: Any) -> ValidationResult:
        raw = thaw_fact(value)
        try:
            data = self._validate(raw)
        except PydanticValidationError as e:
            issues = [
                Issue(message=error["msg"], path=tuple(error.get("loc", ())))
                for error in e.errors()
            ]
            return ValidationResult.fail(*issues)
        # A model instance validated as itself stays locked
        if data is raw:
            data = value
        return ValidationResult.ok(data)

    def __repr__(self) -> str:
        return f"PydanticValidator({getattr(self.target, '__name__', self.target)!r})"


class JSONSchemaValidator:
    """
    Validates facts against a JSON Schema document.

    The draft is picked from the schema's ``$schema`` key (latest draft when
    absent). JSON Schema never transforms data, so the output is the fact
    itself.
    """

    def __init__(self, schema: Mapping[str, Any]):
        self.schema = dict(schema)
        validator_cls = validator_for(self.schema)
        try:
            validator_cls.check_schema(self.schema)
        except SchemaError as e:
            raise EngineConfigurationError(
                f"Invalid JSON schema: {e.message}",
                config_field="schema",
                config_value=self.schema,
            ) from e
        self._validator = validator_cls(self.schema)

    def validate(self, value: Any) -> ValidationResult:
        errors = sorted(
            self._validator.iter_errors(thaw_fact(value)),
            key=lambda e: tuple(map(str, e.absolute_path)),
        )
        if errors:
            return ValidationResult.fail(
                *(Issue(message=e.message, path=tuple(e.absolute_path)) for e in errors)
            )
        return ValidationResult.ok(value)

    def __repr__(self) -> str:
        return f"JSONSchemaValidator({self.schema!r})"


class CallableValidator:
    """
    Wraps a plain function as a validator.

    The function receives the fact and may:
    - return a ``ValidationResult``, used as-is
    - return ``True``/``False``, a predicate accepting or rejecting the fact
    - return any other value, used as the transformed output
    - raise ``ValueError``/``TypeError``, turned into a failure issue
    """

    def __init__(self, fn: Callable[[Any], Any]):
        self.fn = fn

    def validate(self, value: Any) -> ValidationResult:
        try:
            result = self.fn(value)
        except (ValueError, TypeError) as e:
            return ValidationResult.fail(Issue(message=str(e) or type(e).__name__))

        # Awaitables are handed back untouched so standard_validate can reject them
        if isinstance(result, ValidationResult) or inspect.isawaitable(result):
            return result
        if isinstance(result, bool):
            if result:
                return ValidationResult.ok(value)
            name = getattr(self.fn, "__name__", "validator")
            return ValidationResult.fail(Issue(message=f"Rejected by {name}"))
        return ValidationResult.ok(result)

    def __repr__(self) -> str:
        return f"CallableValidator({getattr(self.fn, '__name__', self.fn)!r})"


_ADAPTERS = (PydanticValidator, JSONSchemaValidator, CallableValidator)


def as_validator(schema: Any) -> Optional[Validator]:
    """
    Normalize a schema object into a Validator.

    Accepted inputs:
    - None (no schema)
    - any adapter instance, or any object with a ``validate(value)`` method
    - a pydantic model class, a ``TypeAdapter``, another class or a typing
      construct such as ``list[int]`` (pydantic)
    - a mapping (JSON Schema)
    - a callable (see CallableValidator)

    Raises:
        EngineConfigurationError: If the object cannot be used as a schema
    """
    if schema is None:
        return None
    if isinstance(schema, _ADAPTERS):
        return schema
    if isinstance(schema, TypeAdapter):
        return PydanticValidator(schema)
    if isinstance(schema, type):
        return PydanticValidator(schema)
    if typing.get_origin(schema) is not None:
        return PydanticValidator(schema)
    if isinstance(schema, Mapping):
        return JSONSchemaValidator(schema)
    if isinstance(schema, Validator):
        return schema
    if callable(schema):
        return CallableValidator(schema)

    raise EngineConfigurationError(
        f"Unsupported schema type: {type(schema).__name__}",
        config_field="schema",
        config_value=schema,
    )


def standard_validate(validator: Validator, value: Any) -> ValidationResult:
    """
    Run a validator synchronously and enforce the result contract.

    Raises:
        AsynchronousValidatorError: If the validator returned an awaitable
        ValidatorError: If the validator returned something other than a ValidationResult
    """
    result = validator.validate(value)

    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise AsynchronousValidatorError(validator=validator)

    if not isinstance(result, ValidationResult):
        raise ValidatorError(
            f"Validator returned {type(result).__name__}, expected ValidationResult",
            validator=validator,
        )

    return result
