"""Tests for client error exceptions."""

from http import HTTPStatus

import pydantic
import pytest
from pydantic import BaseModel, Field

from src.exceptions.client_errors import (
    BadRequestError,
    ClientError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    TooEarlyError,
    ValidationError,
)


class _Payload(BaseModel):
    name: str = Field(min_length=1)
    battery: float = Field(ge=0, le=100)


class TestStatusMapping:
    @pytest.mark.parametrize(
        ("error_class", "error_code", "http_status"),
        [
            (ValidationError, "VALIDATION_ERROR", HTTPStatus.BAD_REQUEST),
            (BadRequestError, "BAD_REQUEST", HTTPStatus.BAD_REQUEST),
            (ConflictError, "CONFLICT", HTTPStatus.CONFLICT),
            (InvalidStateError, "INVALID_STATE", HTTPStatus.CONFLICT),
            (TooEarlyError, "TOO_EARLY", HTTPStatus.TOO_EARLY),
        ],
    )
    def test_code_and_status(self, error_class, error_code, http_status):
        error = error_class("failed")
        assert isinstance(error, ClientError)
        assert error.error_code == error_code
        assert error.http_status == http_status

    def test_too_early_is_425(self):
        assert int(TooEarlyError.http_status) == 425


class TestValidationError:
    def test_field_and_value_in_context(self):
        error = ValidationError("bad hours", field="hours", value=0)
        assert error.context == {"field": "hours", "value": 0}

    def test_errors_from_single_field(self):
        error = ValidationError("bad hours", field="hours")
        assert error.errors == [{"field": "hours", "message": "bad hours"}]

    def test_errors_empty_without_field(self):
        assert ValidationError("invalid").errors == []

    def test_explicit_errors_list(self):
        violations = [{"field": "end_time", "message": "must follow start_time"}]
        error = ValidationError("invalid", errors=violations)
        assert error.errors == violations
        assert error.context["errors"] == violations

    def test_from_pydantic_lists_every_violation(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            _Payload.model_validate({"name": "", "battery": 150})
        error = ValidationError.from_pydantic(exc_info.value)
        fields = {violation["field"] for violation in error.errors}
        assert fields == {"name", "battery"}
        assert error.message == "Request validation failed"

    def test_from_pydantic_nested_location(self):
        class _Outer(BaseModel):
            inner: _Payload

        with pytest.raises(pydantic.ValidationError) as exc_info:
            _Outer.model_validate({"inner": {"name": "ok", "battery": -1}})
        error = ValidationError.from_pydantic(exc_info.value)
        assert error.errors[0]["field"] == "inner.battery"


class TestNotFoundError:
    def test_resource_context(self):
        error = NotFoundError("Mission m-1 not found", resource_type="Mission", resource_id="m-1")
        assert error.http_status == HTTPStatus.NOT_FOUND
        assert error.context == {"resource_type": "Mission", "resource_id": "m-1"}

    def test_no_resource_context(self):
        assert NotFoundError("missing").context == {}


class TestInvalidStateError:
    def test_current_status_in_context(self):
        error = InvalidStateError("cannot start", current_status="completed")
        assert error.context["current_status"] == "completed"
