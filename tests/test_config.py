from __future__ import annotations

import pytest

from receipt_extractor.config import Settings, load_settings

ENV_VARS = (
	"GEMINI_API_KEY",
	"GOOGLE_API_KEY",
	"GEMINI_MODEL",
	"PROVIDER_TIMEOUT_SECS",
	"PROVIDER_MAX_RETRIES",
	"MAX_UPLOAD_MB",
	"EXTRACTION_MODE",
	"CURRENCY",
	"LOG_LEVEL",
	"OTLP_ENDPOINT",
	"LOKI_URL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
	for name in ENV_VARS:
		monkeypatch.delenv(name, raising=False)


def test_defaults():
	settings = load_settings()

	assert settings == Settings()
	assert settings.api_key is None
	assert settings.extraction_mode == "itemized"
	assert settings.provider_max_retries == 1
	assert settings.json_logs is False
	assert settings.max_upload_bytes == 10 * 1024 * 1024


def test_env_overrides(monkeypatch):
	monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
	monkeypatch.setenv("GEMINI_MODEL", " gemini-2.5-flash ")
	monkeypatch.setenv("PROVIDER_TIMEOUT_SECS", "45")
	monkeypatch.setenv("EXTRACTION_MODE", "Summary")
	monkeypatch.setenv("CURRENCY", "EUR")
	monkeypatch.setenv("LOKI_URL", "http://loki:3100")

	settings = load_settings()

	assert settings.api_key == "google-key"
	assert settings.gemini_model == "gemini-2.5-flash"
	assert settings.provider_timeout_secs == 45
	assert settings.extraction_mode == "summary"
	assert settings.currency == "EUR"
	assert settings.json_logs is True


def test_gemini_key_wins(monkeypatch):
	monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
	monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
	assert load_settings().api_key == "gemini-key"


def test_empty_api_key_is_missing(monkeypatch):
	monkeypatch.setenv("GEMINI_API_KEY", "")
	assert load_settings().api_key is None


@pytest.mark.parametrize(
	"name, value",
	[("PROVIDER_TIMEOUT_SECS", "soon"), ("MAX_UPLOAD_MB", "1.5"), ("EXTRACTION_MODE", "fancy")],
)
def test_invalid_values_name_the_variable(monkeypatch, name, value):
	monkeypatch.setenv(name, value)
	with pytest.raises(ValueError, match=name):
		load_settings()
