"""Drone mission control exception hierarchy.

Architecture:
    DroneMissionError (base)
    ├── ClientError (4xx)
    │   ├── ValidationError (400)
    │   ├── BadRequestError (400)
    │   ├── NotFoundError (404)
    │   ├── ConflictError (409)
    │   ├── InvalidStateError (409)
    │   └── TooEarlyError (425)
    └── ServerError (5xx)
        ├── DatabaseError (500)
        ├── ExternalServiceError (502)
        └── ServiceUnavailableError (503)

Usage:
    from src.exceptions import NotFoundError

    def get_mission(mission_id: str) -> Mission:
        mission = repository.find(mission_id)
        if mission is None:
            raise NotFoundError(
                f"Mission {mission_id} not found",
                resource_type="Mission",
                resource_id=mission_id,
            )
        return mission
"""

from src.exceptions.base import DroneMissionError
from src.exceptions.client_errors import (
    BadRequestError,
    ClientError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    TooEarlyError,
    ValidationError,
)
from src.exceptions.handlers import (
    create_error_response,
    create_exception_handler,
    create_internal_error_response,
    create_success_response,
    get_http_status_for_error_code,
)
from src.exceptions.server_errors import (
    DatabaseError,
    ExternalServiceError,
    ServerError,
    ServiceUnavailableError,
)

__all__ = [
    "BadRequestError",
    "ClientError",
    "ConflictError",
    "DatabaseError",
    "DroneMissionError",
    "ExternalServiceError",
    "InvalidStateError",
    "NotFoundError",
    "ServerError",
    "ServiceUnavailableError",
    "TooEarlyError",
    "ValidationError",
    "create_error_response",
    "create_exception_handler",
    "create_internal_error_response",
    "create_success_response",
    "get_http_status_for_error_code",
]
