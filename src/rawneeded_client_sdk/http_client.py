from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError
from .tracing import TRACE_HEADER, TraceContext

logger = logging.getLogger(__name__)

LangProvider = Callable[[], str]

# Mutations are sent exactly once.
RETRYABLE_METHODS = frozenset({"GET", "HEAD"})


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


def unwrap_envelope(payload: Any) -> Any:
    """Strip the ``{"content": {"success", "data"}}`` envelope the portal API wraps results in.

    Paginated bodies also use a ``content`` key, holding a list; those are
    returned untouched.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("content"), dict):
        return payload
    content = payload["content"]
    return content["data"] if "data" in content else content


def _has_envelope_error(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("error"), dict)


def _decode(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}


@dataclass
class HttpClient:
    """Shared transport: pooled session, trace header, bounded retries and request scopes.

    A scope is a named channel (``"cart"``, ``"orders"``...). Closing it with
    ``switch_scope`` makes every response still in flight on that channel
    fail with ``REQUEST_DISCARDED`` instead of overwriting newer state.
    """

    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    lang_provider: LangProvider | None = None
    last_operation: LastOperation | None = None
    _scope_versions: dict[str, int] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.trace is None:
            self.trace = TraceContext()
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def _build_url(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def _headers(self, extra: dict[str, str] | None) -> dict[str, str]:
        lang = self.lang_provider() if self.lang_provider else self.config.default_lang
        headers = {"Accept": "application/json", "Accept-Language": lang}
        headers.update(extra or {})
        headers[TRACE_HEADER] = self.trace.ensure()
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        module: str = "unknown",
        operation: str = "unknown",
        scope_key: str | None = None,
    ) -> Any:
        verb = method.upper()
        started = time.monotonic()
        scope_version = self._open_scope(scope_key)

        response = self._send(
            verb,
            self._build_url(path),
            headers=self._headers(headers),
            json_body=json_body,
            params=params,
            module=module,
            operation=operation,
            started=started,
        )

        if scope_key is not None and self.get_scope_version(scope_key) != scope_version:
            self._record(module, operation, started, "discarded")
            raise TransportError(
                code="REQUEST_DISCARDED",
                message="Response discarded because its scope was closed",
                details={"type": "scope_switched", "scope": scope_key},
                trace_id=self.trace.trace_id,
                status_code=0,
            )

        self.trace.update_from_headers(response.headers)
        payload = _decode(response)
        if response.ok and not _has_envelope_error(payload):
            self._record(module, operation, started, "success")
            return unwrap_envelope(payload)

        self._record(module, operation, started, "error")
        logger.info(
            "api_request_failed",
            extra={"api_module": module, "operation": operation, "status": response.status_code},
        )
        raise map_error(
            response.status_code,
            payload if isinstance(payload, dict) else {"message": json.dumps(payload)},
            self.trace.trace_id,
        )

    def _send(
        self,
        verb: str,
        url: str,
        *,
        headers: dict[str, str],
        json_body: dict[str, Any] | None,
        params: dict[str, Any] | None,
        module: str,
        operation: str,
        started: float,
    ) -> requests.Response:
        attempts = self.config.retries + 1 if verb in RETRYABLE_METHODS else 1
        for attempt in range(attempts):
            final = attempt == attempts - 1
            try:
                response = self.session.request(
                    method=verb,
                    url=url,
                    headers=headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if final:
                    self._record(module, operation, started, "error")
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        trace_id=self.trace.trace_id,
                        status_code=0,
                    ) from exc
            else:
                if response.status_code < 500 or final:
                    return response
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))
        raise RuntimeError("HTTP request failed without response")

    def _open_scope(self, scope_key: str | None) -> int | None:
        if scope_key is None:
            return None
        return self._scope_versions.setdefault(scope_key, 0)

    def switch_scope(self, scope_key: str) -> int:
        """Close the current scope so responses still in flight for it are discarded."""
        self._scope_versions[scope_key] = self.get_scope_version(scope_key) + 1
        return self._scope_versions[scope_key]

    def close_scopes(self) -> None:
        for scope_key in list(self._scope_versions):
            self.switch_scope(scope_key)

    def get_scope_version(self, scope_key: str) -> int:
        return self._scope_versions.get(scope_key, 0)

    def _record(self, module: str, operation: str, started: float, result: str) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=self.trace.trace_id,
        )
