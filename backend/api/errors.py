"""
HTTP status mapping for orchestration failures.
"""
from typing import Dict, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse

from core.exceptions import OrchestrationError
from api.models.responses import ErrorResponse

# error_type -> (HTTP status, response code)
_STATUS_BY_ERROR_TYPE: Dict[str, Tuple[int, str]] = {
    "EMPTY_INPUT": (400, "EMPTY_INPUT"),
    "TEXT_TOO_LONG": (413, "TEXT_TOO_LONG"),
    "PROMPT_TOO_LARGE": (413, "PROMPT_TOO_LARGE"),
    "OUTPUT_TOO_LONG": (413, "TEXT_TOO_LONG"),
    "AUTHENTICATION_ERROR": (401, "AUTHENTICATION_ERROR"),
    "AUTHORIZATION_ERROR": (403, "FORBIDDEN"),
    "RATE_LIMIT": (429, "RATE_LIMIT_EXCEEDED"),
    "MALFORMED_RESPONSE": (502, "BAD_GATEWAY"),
    "INVALID_RESPONSE": (502, "BAD_GATEWAY"),
    "SERVER_ERROR": (503, "SERVICE_UNAVAILABLE"),
    "CONNECTION_RESET": (503, "SERVICE_UNAVAILABLE"),
    "CONNECTION_REFUSED": (503, "SERVICE_UNAVAILABLE"),
    "CONNECTION_ABORTED": (503, "SERVICE_UNAVAILABLE"),
    "DNS_ERROR": (503, "SERVICE_UNAVAILABLE"),
    "NETWORK_UNREACHABLE": (503, "SERVICE_UNAVAILABLE"),
    "NETWORK_ERROR": (503, "SERVICE_UNAVAILABLE"),
    "TIMEOUT": (504, "GATEWAY_TIMEOUT"),
}
_DEFAULT_STATUS = (500, "INTERNAL_ERROR")


def status_for(error: OrchestrationError) -> Tuple[int, str]:
    return _STATUS_BY_ERROR_TYPE.get(error.error_type or "", _DEFAULT_STATUS)


def error_response_body(error: OrchestrationError) -> ErrorResponse:
    _, code = status_for(error)
    classification = getattr(error, "classification", None)
    return ErrorResponse(
        code=code,
        message=str(error),
        error_type=error.error_type,
        suggestion=getattr(classification, "suggestion", None),
        action=getattr(classification, "action", None),
    )


async def orchestration_error_handler(request: Request, exc: OrchestrationError) -> JSONResponse:
    status_code, _ = status_for(exc)
    body = error_response_body(exc)
    return JSONResponse(status_code=status_code, content=body.model_dump())
