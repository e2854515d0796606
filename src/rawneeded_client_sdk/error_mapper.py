from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    ConflictingSessionError,
    NotFoundError,
    PreconditionFailedError,
    RateLimitError,
    SearchQuotaExceededError,
    ServerError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationError,
)

# Business error codes the portal API reports inside its error envelope.
EXISTING_SESSION_CODE = "513"
NO_SEARCHES_LEFT_CODE = "518"

_CODE_OVERRIDES: dict[str, type[ApiError]] = {
    EXISTING_SESSION_CODE: ConflictingSessionError,
    NO_SEARCHES_LEFT_CODE: SearchQuotaExceededError,
}


def extract_error(payload: Mapping[str, object] | None) -> tuple[str | None, str | None]:
    """Return ``(code, message)`` from either the envelope or a flat error body."""
    payload = payload or {}
    envelope = payload.get("error")
    if isinstance(envelope, Mapping):
        code = envelope.get("errorCode") or envelope.get("code")
        message = envelope.get("errorMessage") or envelope.get("message")
    else:
        code = payload.get("code")
        message = payload.get("message")
    return (str(code) if code is not None else None, str(message) if message is not None else None)


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    raw_code, raw_message = extract_error(payload)
    code = raw_code or "HTTP_ERROR"
    message = raw_message or "Request failed"
    details = payload.get("details")
    payload_trace_id = payload.get("trace_id")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id
    mapped: type[ApiError]
    if code in _CODE_OVERRIDES:
        mapped = _CODE_OVERRIDES[code]
    elif status_code == 401:
        mapped = UnauthenticatedError
    elif status_code == 403:
        mapped = UnauthorizedError
    elif status_code == 404:
        mapped = NotFoundError
    elif status_code in {400, 422}:
        mapped = ValidationError
    elif status_code in {409, 412}:
        mapped = PreconditionFailedError
    elif status_code == 429:
        mapped = RateLimitError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = ApiError
    return mapped(
        code=code,
        message=message,
        details=details,
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )
