from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping

TELEMETRY_CATEGORIES = frozenset({"auth", "navigation", "api_call_result", "error", "permission_denied"})

# Context keys that could carry personal or payment data. Matched case-insensitively at any depth.
PII_KEYS = frozenset(
    {
        "email",
        "password",
        "phone",
        "full_name",
        "address",
        "token",
        "authorization",
        "crn",
        "iban",
        "card_number",
    }
)


def _walk_keys(context: Mapping[str, Any]) -> Iterator[str]:
    for key, value in context.items():
        yield str(key)
        if isinstance(value, Mapping):
            yield from _walk_keys(value)


def pii_keys_in(context: Mapping[str, Any] | None) -> list[str]:
    if not context:
        return []
    return sorted({key for key in _walk_keys(context) if key.lower() in PII_KEYS})


@dataclass(frozen=True)
class TelemetryEvent:
    category: str
    name: str
    module: str
    action: str
    timestamp_utc: str
    trace_id: str | None = None
    duration_ms: int | None = None
    success: bool | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        # Absent fields are left out of the JSONL line.
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


def build_event(
    *,
    category: str,
    name: str,
    module: str,
    action: str,
    trace_id: str | None = None,
    duration_ms: int | None = None,
    success: bool | None = None,
    error_code: str | None = None,
    context: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    """Validate and stamp one telemetry event.

    Raises ``ValueError`` for an unknown category or when the context
    carries a PII-like key.
    """
    if category not in TELEMETRY_CATEGORIES:
        raise ValueError(f"Unsupported telemetry category: {category}")
    leaked = pii_keys_in(context)
    if leaked:
        raise ValueError(f"PII-like keys are forbidden in telemetry context: {leaked}")
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return TelemetryEvent(
        category=category,
        name=name,
        module=module,
        action=action,
        timestamp_utc=timestamp,
        trace_id=trace_id,
        duration_ms=duration_ms,
        success=success,
        error_code=error_code,
        context=dict(context) if context else None,
    )
