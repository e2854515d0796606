from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, TypeVar

from dotenv import load_dotenv

SUPPORTED_LANGS = ("ar", "en")
ENV_PREFIX = "RAWNEEDED_"

T = TypeVar("T")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for the portal API.

    ``api_base_url`` may be set per environment profile with
    ``RAWNEEDED_API_BASE_URL_<ENV>``, which wins over the generic key.
    """

    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 20
    verify_ssl: bool = True
    default_lang: str = "ar"

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _text(key: str) -> str:
    return (os.getenv(ENV_PREFIX + key) or "").strip()


def _typed(key: str, parse: Callable[[str], T], default: T, kind: str) -> T:
    raw = _text(key)
    if not raw:
        return default
    try:
        return parse(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {ENV_PREFIX}{key}: expected {kind}, got {raw!r}") from exc


def _check(key: str, value: object, ok: bool, expectation: str) -> None:
    if not ok:
        raise ConfigError(f"Invalid {ENV_PREFIX}{key}: expected {expectation}, got {value!r}")


def _flag(key: str, default: bool) -> bool:
    raw = _text(key).lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def load_config(env_file: str | None = None) -> ClientConfig:
    """Build a ``ClientConfig`` from RAWNEEDED_* variables, reading ``env_file`` first if given."""
    load_dotenv(env_file)

    env_name = _text("ENV") or "dev"
    api_base_url = _text(f"API_BASE_URL_{env_name.upper()}") or _text("API_BASE_URL")
    if not api_base_url:
        raise ConfigError(f"Missing required config values: {ENV_PREFIX}API_BASE_URL")

    # A single overall timeout seeds both the connect and read timeouts.
    timeout = _typed("TIMEOUT_SECONDS", float, 10.0, "a number")
    _check("TIMEOUT_SECONDS", timeout, timeout > 0, "> 0")
    connect_timeout = _typed("CONNECT_TIMEOUT_SECONDS", float, min(timeout, 5.0), "a number")
    _check("CONNECT_TIMEOUT_SECONDS", connect_timeout, connect_timeout > 0, "> 0")
    read_timeout = _typed("READ_TIMEOUT_SECONDS", float, max(timeout, connect_timeout), "a number")
    _check("READ_TIMEOUT_SECONDS", read_timeout, read_timeout > 0, "> 0")

    retries = _typed("RETRIES", int, 3, "an integer")
    _check("RETRIES", retries, retries >= 0, ">= 0")
    backoff = _typed("RETRY_BACKOFF_SECONDS", float, 0.3, "a number")
    _check("RETRY_BACKOFF_SECONDS", backoff, backoff >= 0, ">= 0")
    max_connections = _typed("MAX_CONNECTIONS", int, 20, "an integer")
    _check("MAX_CONNECTIONS", max_connections, max_connections >= 1, ">= 1")

    default_lang = (_text("DEFAULT_LANG") or "ar").lower()
    _check("DEFAULT_LANG", default_lang, default_lang in SUPPORTED_LANGS, f"one of {SUPPORTED_LANGS}")

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect_timeout,
        read_timeout_seconds=read_timeout,
        retries=retries,
        retry_backoff_seconds=backoff,
        max_connections=max_connections,
        verify_ssl=_flag("VERIFY_SSL", True),
        default_lang=default_lang,
    )
