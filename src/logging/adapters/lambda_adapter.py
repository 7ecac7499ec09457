"""Seed the logging context from a Lambda invocation."""

from typing import Any

from src.logging.context import clear_context, set_correlation_id, set_extra_context
from src.types import LambdaContext


def set_lambda_context(
    event: dict[str, Any],
    context: LambdaContext,
) -> None:
    """Reset and populate the logging context for one invocation.

    Lambda reuses the process between invocations, so previous values are
    cleared first.

    Args:
        event: Lambda event dictionary.
        context: Lambda context object.
    """
    clear_context()
    set_correlation_id(context.aws_request_id)
    set_extra_context(
        function_name=context.function_name,
        function_version=context.function_version,
    )

    request_context = event.get("requestContext")
    if isinstance(request_context, dict) and "requestId" in request_context:
        set_extra_context(api_request_id=str(request_context["requestId"]))

    resource = event.get("resource")
    if isinstance(resource, str):
        set_extra_context(route=f"{event.get('httpMethod', '')} {resource}".strip())
