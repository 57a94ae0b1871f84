"""
Tests for the standard_rules.validation package.

This module tests:
- ValidationResult and Issue
- PydanticValidator, JSONSchemaValidator, CallableValidator
- as_validator schema normalization
- standard_validate contract enforcement
"""

from types import MappingProxyType
from typing import Dict, List

import pytest
from pydantic import BaseModel, TypeAdapter
from pydantic.errors import PydanticSchemaGenerationError

from standard_rules.exceptions import (
    AsynchronousValidatorError,
    EngineConfigurationError,
    FactValidationError,
    ValidatorError,
)
from standard_rules.facts import freeze_fact
from standard_rules.validation import (
    CallableValidator,
    Issue,
    JSONSchemaValidator,
    PydanticValidator,
    ValidationResult,
    Validator,
    as_validator,
    standard_validate,
)


class Violation(BaseModel):
    kind: str
    fine: float


PERSON_SCHEMA = {
    "type": "object",
    "properties": {"age": {"type": "number"}, "name": {"type": "string"}},
    "required": ["age", "name"],
}


# =============================================================================
# ValidationResult Tests
# =============================================================================

class TestValidationResult:
    """Tests for the uniform result type."""

    def test_ok(self):
        result = ValidationResult.ok({"a": 1})

        assert result.success
        assert result.data == {"a": 1}
        assert result.issues == ()
        assert result.unwrap() == {"a": 1}

    def test_fail_normalizes_strings(self):
        """Test plain strings become issues."""
        result = ValidationResult.fail("bad", Issue("worse", path=("a", 0)))

        assert not result.success
        assert result.data is None
        assert result.issues == (Issue("bad"), Issue("worse", ("a", 0)))

    def test_fail_requires_issues(self):
        """Test a failure without issues is rejected."""
        with pytest.raises(ValueError):
            ValidationResult.fail()

    def test_unwrap_failure(self):
        """Test unwrap raises with the issues attached."""
        result = ValidationResult.fail(Issue("must be positive", path=("fine",)))

        with pytest.raises(FactValidationError) as exc_info:
            result.unwrap()

        assert exc_info.value.issues == result.issues
        assert "fine: must be positive" in str(exc_info.value)

    def test_issue_str(self):
        assert str(Issue("oops")) == "oops"
        assert str(Issue("oops", ("items", 2, "id"))) == "items.2.id: oops"


# =============================================================================
# Adapter Tests
# =============================================================================

class TestPydanticValidator:
    """Tests for the pydantic adapter."""

    def test_model_success_returns_instance(self):
        """Test output is a coerced model instance."""
        result = PydanticValidator(Violation).validate({"kind": "speeding", "fine": "250"})

        assert result.success
        assert result.data == Violation(kind="speeding", fine=250.0)

    def test_model_failure_issues(self):
        """Test pydantic errors become issues with locations."""
        result = PydanticValidator(Violation).validate({"kind": "speeding"})

        assert not result.success
        assert [issue.path for issue in result.issues] == [("fine",)]
        assert result.issues[0].message

    def test_accepts_locked_facts(self):
        """Test read-only mappings validate like dicts."""
        fact = MappingProxyType({"kind": "parking", "fine": 40})

        assert PydanticValidator(Violation).validate(fact).success

    def test_type_adapter_and_typing_constructs(self):
        """Test non-model targets go through TypeAdapter."""
        assert PydanticValidator(TypeAdapter(List[int])).validate(["1", 2]).data == [1, 2]
        assert PydanticValidator(Dict[str, int]).validate({"a": "3"}).data == {"a": 3}
        assert not PydanticValidator(int).validate("x").success

    def test_locked_list_fact(self):
        """Test list facts locked by the session validate as lists."""
        assert PydanticValidator(List[int]).validate(freeze_fact([1, 2])).data == [1, 2]

    def test_plain_class_is_a_configuration_error(self):
        """Test a class pydantic cannot build a schema for fails at registration."""
        class Sensor:
            pass

        with pytest.raises(EngineConfigurationError) as exc_info:
            PydanticValidator(Sensor)

        assert exc_info.value.config_field == "schema"
        assert exc_info.value.config_value is Sensor
        assert isinstance(exc_info.value.__cause__, PydanticSchemaGenerationError)


class TestJSONSchemaValidator:
    """Tests for the JSON Schema adapter."""

    def test_success_returns_input(self):
        """Test the fact itself is the output."""
        fact = MappingProxyType({"age": 30, "name": "Ada"})

        result = JSONSchemaValidator(PERSON_SCHEMA).validate(fact)

        assert result.success
        assert result.data is fact

    def test_collects_all_issues_sorted_by_path(self):
        """Test every error is reported, root errors first."""
        result = JSONSchemaValidator(PERSON_SCHEMA).validate({"age": "x"})

        assert not result.success
        assert [issue.path for issue in result.issues] == [(), ("age",)]
        assert "'name' is a required property" in result.issues[0].message

    def test_invalid_schema(self):
        """Test a malformed schema fails at construction."""
        with pytest.raises(EngineConfigurationError):
            JSONSchemaValidator({"type": 12})

    def test_array_facts(self):
        """Test list facts locked by the session satisfy array schemas."""
        validator = JSONSchemaValidator({"type": "array", "items": {"type": "integer"}})

        assert validator.validate(freeze_fact([1, 2, 3])).success
        assert not validator.validate(freeze_fact([1, "2"])).success

    def test_caller_tuple_is_not_an_array(self):
        """Test a tuple the caller inserted is not mistaken for a locked list."""
        validator = JSONSchemaValidator({"type": "array"})

        assert not validator.validate((1, 2, 3)).success


class TestCallableValidator:
    """Tests for the plain-function adapter."""

    def test_predicate(self):
        validator = CallableValidator(lambda fact: fact.get("fine", 0) > 0)

        assert validator.validate({"fine": 10}).data == {"fine": 10}
        assert not validator.validate({"fine": 0}).success

    def test_rejection_message_names_function(self):
        def is_speeding(fact):
            return False

        result = CallableValidator(is_speeding).validate({})

        assert result.issues[0].message == "Rejected by is_speeding"

    def test_result_passthrough(self):
        expected = ValidationResult.fail("custom")

        assert CallableValidator(lambda fact: expected).validate({}) is expected

    def test_transform(self):
        """Test non-boolean return values become the output."""
        result = CallableValidator(lambda fact: {**fact, "normalized": True}).validate({"a": 1})

        assert result.data == {"a": 1, "normalized": True}

    def test_value_error_is_a_failure(self):
        def parse(fact):
            raise ValueError("not a violation")

        result = CallableValidator(parse).validate({})

        assert not result.success
        assert result.issues[0].message == "not a violation"

    def test_other_exceptions_propagate(self):
        def broken(fact):
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            CallableValidator(broken).validate({})


# =============================================================================
# as_validator / standard_validate Tests
# =============================================================================

class CustomValidator:
    def validate(self, value):
        return ValidationResult.ok(value)


class TestAsValidator:
    """Tests for schema normalization."""

    def test_none(self):
        assert as_validator(None) is None

    def test_adapters_returned_unchanged(self):
        validator = JSONSchemaValidator(PERSON_SCHEMA)

        assert as_validator(validator) is validator

    def test_custom_protocol_object(self):
        custom = CustomValidator()

        assert isinstance(custom, Validator)
        assert as_validator(custom) is custom

    @pytest.mark.parametrize(
        "schema, expected",
        [
            (Violation, PydanticValidator),
            (TypeAdapter(int), PydanticValidator),
            (List[int], PydanticValidator),
            (PERSON_SCHEMA, JSONSchemaValidator),
            (lambda fact: True, CallableValidator),
        ],
    )
    def test_dispatch(self, schema, expected):
        assert isinstance(as_validator(schema), expected)

    def test_unsupported(self):
        with pytest.raises(EngineConfigurationError) as exc_info:
            as_validator(3.14)

        assert exc_info.value.config_field == "schema"


class TestStandardValidate:
    """Tests for the synchronous contract."""

    def test_passes_result_through(self):
        result = standard_validate(CustomValidator(), {"a": 1})

        assert result.success and result.data == {"a": 1}

    def test_async_validator_raises(self):
        """Test coroutine results are rejected (and closed)."""
        class AsyncValidator:
            async def validate(self, value):
                return ValidationResult.ok(value)

        with pytest.raises(AsynchronousValidatorError) as exc_info:
            standard_validate(AsyncValidator(), {})

        assert exc_info.value.error_code == "ASYNC_VALIDATOR_ERROR"
        assert exc_info.value.context["validator"] == "AsyncValidator"

    def test_async_callable_raises(self):
        async def check(fact):
            return True

        with pytest.raises(AsynchronousValidatorError):
            standard_validate(as_validator(check), {})

    def test_wrong_result_type(self):
        class Sloppy:
            def validate(self, value):
                return True

        with pytest.raises(ValidatorError) as exc_info:
            standard_validate(Sloppy(), {})

        assert not isinstance(exc_info.value, AsynchronousValidatorError)
