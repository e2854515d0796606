from __future__ import annotations

from rawneeded_client_sdk.error_mapper import map_error
from rawneeded_client_sdk.exceptions import (
    ApiError,
    ConflictingSessionError,
    NetworkOrServerError,
    NotFoundError,
    PreconditionFailedError,
    RateLimitError,
    SearchQuotaExceededError,
    ServerError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationError,
)


def test_error_mapper_status_classes() -> None:
    assert isinstance(map_error(401, {"code": "INVALID_TOKEN", "message": "bad"}, "t"), UnauthenticatedError)
    assert isinstance(map_error(403, {"code": "FORBIDDEN", "message": "no"}, "t"), UnauthorizedError)
    assert isinstance(map_error(404, {"code": "NOT_FOUND", "message": "gone"}, "t"), NotFoundError)
    assert isinstance(map_error(422, {"code": "INVALID", "message": "bad"}, "t"), ValidationError)
    assert isinstance(map_error(409, {"code": "CONFLICT", "message": "stale"}, "t"), PreconditionFailedError)
    assert isinstance(map_error(429, {"code": "SLOW_DOWN", "message": "wait"}, "t"), RateLimitError)


def test_error_mapper_reads_portal_envelope() -> None:
    err = map_error(400, {"error": {"errorCode": "513", "errorMessage": "Already signed in"}}, "trace-1")
    assert isinstance(err, ConflictingSessionError)
    assert err.code == "513"
    assert err.message == "Already signed in"
    assert err.trace_id == "trace-1"

    quota = map_error(400, {"error": {"errorCode": "518", "errorMessage": "No searches left"}}, None)
    assert isinstance(quota, SearchQuotaExceededError)


def test_error_mapper_server_failures_are_network_or_server_errors() -> None:
    server = map_error(500, {"code": "SERVER_ERROR", "message": "oops"}, "trace-500")
    assert isinstance(server, ServerError)
    assert isinstance(server, NetworkOrServerError)
    assert "trace_id=trace-500" in str(server)


def test_error_mapper_defaults_when_body_is_empty() -> None:
    err = map_error(418, None, None)
    assert type(err) is ApiError
    assert err.code == "HTTP_ERROR"
    assert err.message == "Request failed"
