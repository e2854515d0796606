from __future__ import annotations

import pytest

from rawneeded_client_sdk.config import ConfigError, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "RAWNEEDED_ENV",
        "RAWNEEDED_API_BASE_URL",
        "RAWNEEDED_API_BASE_URL_DEV",
        "RAWNEEDED_API_BASE_URL_STAGING",
        "RAWNEEDED_DEFAULT_LANG",
        "RAWNEEDED_VERIFY_SSL",
    ):
        monkeypatch.delenv(key, raising=False)


def test_load_config_requires_base_url(tmp_path) -> None:
    with pytest.raises(ConfigError, match="RAWNEEDED_API_BASE_URL"):
        load_config(str(tmp_path / "missing.env"))


def test_load_config_profile_override(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("RAWNEEDED_ENV", "staging")
    monkeypatch.setenv("RAWNEEDED_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("RAWNEEDED_API_BASE_URL_STAGING", "https://staging.example.com/")
    cfg = load_config(str(tmp_path / "missing.env"))
    assert cfg.api_base_url == "https://staging.example.com"
    assert cfg.normalized_env == "staging"


def test_load_config_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("RAWNEEDED_API_BASE_URL", "https://api.example.com")
    cfg = load_config(str(tmp_path / "missing.env"))
    assert cfg.retries == 3
    assert cfg.default_lang == "ar"
    assert cfg.verify_ssl is True
    assert cfg.max_connections == 20


def test_load_config_reads_env_file(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Register both keys so monkeypatch removes what python-dotenv sets.
    for key in ("RAWNEEDED_API_BASE_URL", "RAWNEEDED_DEFAULT_LANG"):
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    env_file = tmp_path / ".env"
    env_file.write_text("RAWNEEDED_API_BASE_URL=https://file.example.com\nRAWNEEDED_DEFAULT_LANG=en\n")
    cfg = load_config(str(env_file))
    assert cfg.api_base_url == "https://file.example.com"
    assert cfg.default_lang == "en"


@pytest.mark.parametrize(
    ("key", "value", "snippet"),
    [
        ("RAWNEEDED_TIMEOUT_SECONDS", "0", "RAWNEEDED_TIMEOUT_SECONDS"),
        ("RAWNEEDED_CONNECT_TIMEOUT_SECONDS", "0", "RAWNEEDED_CONNECT_TIMEOUT_SECONDS"),
        ("RAWNEEDED_READ_TIMEOUT_SECONDS", "-1", "RAWNEEDED_READ_TIMEOUT_SECONDS"),
        ("RAWNEEDED_RETRIES", "-1", "RAWNEEDED_RETRIES"),
        ("RAWNEEDED_RETRY_BACKOFF_SECONDS", "-0.1", "RAWNEEDED_RETRY_BACKOFF_SECONDS"),
        ("RAWNEEDED_MAX_CONNECTIONS", "0", "RAWNEEDED_MAX_CONNECTIONS"),
        ("RAWNEEDED_RETRIES", "many", "RAWNEEDED_RETRIES"),
        ("RAWNEEDED_DEFAULT_LANG", "fr", "RAWNEEDED_DEFAULT_LANG"),
    ],
)
def test_load_config_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path,
    key: str,
    value: str,
    snippet: str,
) -> None:
    monkeypatch.setenv("RAWNEEDED_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigError, match=snippet):
        load_config(str(tmp_path / "missing.env"))
