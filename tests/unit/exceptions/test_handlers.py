"""Tests for exception handler utilities."""

import json
import logging

from pydantic import BaseModel, Field

from src.exceptions.base import DroneMissionError
from src.exceptions.client_errors import NotFoundError, ValidationError
from src.exceptions.handlers import (
    create_error_response,
    create_exception_handler,
    create_internal_error_response,
    create_success_response,
    get_http_status_for_error_code,
)


class _Sample(BaseModel):
    battery: float = Field(ge=0, le=100)
    latitude: float = Field(ge=-90, le=90)


class TestCreateErrorResponse:
    def test_status_code_and_header(self):
        response = create_error_response(ValidationError("invalid"))
        assert response["statusCode"] == 400
        assert response["headers"]["Content-Type"] == "application/problem+json"

    def test_problem_document(self):
        response = create_error_response(ValidationError("invalid"))
        body = json.loads(response["body"])
        assert body["status"] == 400
        assert body["detail"] == "invalid"
        assert "VALIDATION_ERROR" in body["type"]
        assert body["title"] == "Validation Error"

    def test_request_id_in_body(self):
        response = create_error_response(ValidationError("invalid"), request_id="req-123")
        body = json.loads(response["body"])
        assert body["instance"] == "/requests/req-123"

    def test_context_included_by_default(self):
        response = create_error_response(ValidationError("invalid", field="hours"))
        body = json.loads(response["body"])
        assert body["context"]["field"] == "hours"

    def test_context_excluded_when_disabled(self):
        response = create_error_response(
            ValidationError("invalid", field="hours"),
            include_context=False,
        )
        body = json.loads(response["body"])
        assert "context" not in body


class TestCreateInternalErrorResponse:
    def test_generic_detail(self):
        response = create_internal_error_response("req-1")
        body = json.loads(response["body"])
        assert response["statusCode"] == 500
        assert body["detail"] == "An unexpected error occurred"
        assert "INTERNAL_ERROR" in body["type"]


class TestCreateSuccessResponse:
    def test_status_code_and_header(self):
        response = create_success_response(200, {"status": "ok"})
        assert response["statusCode"] == 200
        assert response["headers"]["Content-Type"] == "application/json"

    def test_body_serialized(self):
        response = create_success_response(201, {"id": "123"})
        assert json.loads(response["body"])["id"] == "123"


class TestCreateExceptionHandler:
    def test_returns_result_on_success(self):
        @create_exception_handler
        def handler(event, context):
            return {"statusCode": 200, "body": "ok"}

        assert handler({}, None)["statusCode"] == 200

    def test_catches_application_error(self):
        @create_exception_handler
        def handler(event, context):
            raise NotFoundError("mission not found")

        assert handler({}, None)["statusCode"] == 404

    def test_converts_pydantic_error_with_every_field(self):
        @create_exception_handler
        def handler(event, context):
            return _Sample.model_validate({"battery": 120, "latitude": 95})

        result = handler({}, None)
        body = json.loads(result["body"])
        assert result["statusCode"] == 400
        fields = {violation["field"] for violation in body["context"]["errors"]}
        assert fields == {"battery", "latitude"}

    def test_unexpected_error_does_not_leak_detail(self, caplog):
        caplog.set_level(logging.ERROR)
        @create_exception_handler
        def handler(event, context):
            raise RuntimeError("connection string secret=abc")

        result = handler({}, None)
        body = json.loads(result["body"])
        assert result["statusCode"] == 500
        assert "secret" not in result["body"]
        assert body["detail"] == "An unexpected error occurred"
        assert "Unhandled error" in caplog.text

    def test_extracts_request_id_from_event(self):
        @create_exception_handler
        def handler(event, context):
            raise ValidationError("invalid")

        result = handler({"requestContext": {"requestId": "abc-123"}}, None)
        body = json.loads(result["body"])
        assert body["instance"] == "/requests/abc-123"

    def test_handles_non_dict_event(self):
        @create_exception_handler
        def handler(event, context):
            raise ValidationError("invalid")

        assert handler("not a dict", None)["statusCode"] == 400


class TestGetHttpStatusForErrorCode:
    def test_known_error_codes(self):
        assert get_http_status_for_error_code("VALIDATION_ERROR") == 400
        assert get_http_status_for_error_code("NOT_FOUND") == 404
        assert get_http_status_for_error_code("CONFLICT") == 409
        assert get_http_status_for_error_code("INVALID_STATE") == 409
        assert get_http_status_for_error_code("TOO_EARLY") == 425
        assert get_http_status_for_error_code("DATABASE_ERROR") == 500

    def test_unknown_error_code(self):
        assert get_http_status_for_error_code("NONEXISTENT") == 500

    def test_base_class_is_internal_error(self):
        assert DroneMissionError("x").http_status == 500
