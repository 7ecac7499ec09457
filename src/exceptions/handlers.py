"""Exception handling utilities following RFC 7807."""

import json
import logging
from collections.abc import Callable
from functools import wraps
from http import HTTPStatus
from typing import Any, ParamSpec, TypeGuard, TypeVar

import pydantic

from src.exceptions.base import DroneMissionError
from src.exceptions.client_errors import ValidationError

LambdaResponse = dict[str, Any]

logger = logging.getLogger(__name__)

_GENERIC_ERROR_DETAIL = "An unexpected error occurred"


def create_error_response(
    exception: DroneMissionError,
    *,
    include_context: bool = True,
    request_id: str | None = None,
) -> LambdaResponse:
    """Create an API Gateway error response from an exception.

    Args:
        exception: The DroneMissionError to convert.
        include_context: Whether to include context in response.
        request_id: Optional request ID for tracing.

    Returns:
        Lambda-compatible response dictionary.
    """
    body: dict[str, Any] = {
        "type": f"https://drone-mission-control.io/errors/{exception.error_code}",
        "title": _format_error_title(exception.error_code),
        "status": int(exception.http_status),
        "detail": exception.message,
    }

    if request_id:
        body["instance"] = f"/requests/{request_id}"

    if include_context and exception.context:
        body["context"] = exception.context

    return {
        "statusCode": int(exception.http_status),
        "headers": {
            "Content-Type": "application/problem+json",
        },
        "body": json.dumps(body, default=str),
    }


def create_internal_error_response(request_id: str | None = None) -> LambdaResponse:
    """Create a generic 500 response that does not leak internal details.

    Args:
        request_id: Optional request ID for tracing.

    Returns:
        Lambda-compatible response dictionary.
    """
    return create_error_response(
        DroneMissionError(_GENERIC_ERROR_DETAIL),
        include_context=False,
        request_id=request_id,
    )


def create_success_response(
    status_code: int,
    body: dict[str, Any],
) -> LambdaResponse:
    """Create an API Gateway success response.

    Args:
        status_code: HTTP status code (2xx).
        body: Response body dictionary.

    Returns:
        Lambda-compatible response dictionary.
    """
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
        },
        "body": json.dumps(body, default=str),
    }


P = ParamSpec("P")
T = TypeVar("T")


def create_exception_handler(
    func: Callable[P, T],
) -> Callable[P, T | LambdaResponse]:
    """Decorator that converts raised exceptions into error responses.

    Application errors are returned verbatim. Pydantic validation errors
    become a VALIDATION_ERROR listing every violated field. Anything else is
    logged with its traceback and answered with a generic 500.

    Args:
        func: The handler function to wrap.

    Returns:
        Wrapped function that handles exceptions.
    """

    @wraps(func)
    def handle_call(*args: P.args, **kwargs: P.kwargs) -> T | LambdaResponse:
        request_id = _extract_request_id(args)
        try:
            return func(*args, **kwargs)
        except DroneMissionError as error:
            logger.info("Request failed: %s", error.message, extra=error.to_log_fields())
            return create_error_response(error, request_id=request_id)
        except pydantic.ValidationError as error:
            validation_error = ValidationError.from_pydantic(error)
            logger.info(
                "Request failed validation",
                extra={"error_code": validation_error.error_code, "errors": validation_error.errors},
            )
            return create_error_response(validation_error, request_id=request_id)
        except Exception:
            logger.exception("Unhandled error while processing request")
            return create_internal_error_response(request_id)

    return handle_call


def _format_error_title(error_code: str) -> str:
    """Format error code as human-readable title."""
    return error_code.replace("_", " ").title()


def _is_string_dict(value: object) -> TypeGuard[dict[str, Any]]:
    """Type guard to check if value is a dict with string keys."""
    return isinstance(value, dict)


def _extract_request_id(args: tuple[object, ...]) -> str | None:
    """Extract request ID from Lambda event if present."""
    if not args:
        return None

    event = args[0]
    if not _is_string_dict(event):
        return None

    request_context = event.get("requestContext")
    if not _is_string_dict(request_context):
        return None

    request_id = request_context.get("requestId")
    if isinstance(request_id, str):
        return request_id

    return None


def get_http_status_for_error_code(error_code: str) -> int:
    """Get HTTP status code for an error code.

    Args:
        error_code: The error code to look up.

    Returns:
        HTTP status code, or 500 if not found.
    """
    exception_class = DroneMissionError.get_by_error_code(error_code)
    if exception_class is not None:
        return exception_class.http_status
    return HTTPStatus.INTERNAL_SERVER_ERROR
