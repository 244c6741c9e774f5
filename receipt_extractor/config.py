from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable

SERVICE_NAME = "receipt-extractor"

EXTRACTION_MODES = ("itemized", "summary")


def _env(name: str, default: Any, cast: Callable[[str], Any]):
	raw = os.getenv(name)
	if raw is None or raw == "":
		return default
	try:
		return cast(raw)
	except Exception as e:
		raise ValueError(
			f"env var {name!r}={raw!r} not valid for {cast.__name__}"
		) from e


def _mode(raw: str) -> str:
	mode = raw.strip().lower()
	if mode not in EXTRACTION_MODES:
		raise ValueError(mode)
	return mode


@dataclass(frozen=True)
class Settings:
	service: str = SERVICE_NAME
	log_level: str = "INFO"
	json_logs: bool = False
	otlp_endpoint: str | None = None
	# GEMINI_API_KEY wins over GOOGLE_API_KEY
	api_key: str | None = None
	gemini_model: str = "gemini-2.0-flash-001"
	provider_timeout_secs: int = 30
	provider_max_retries: int = 1
	max_upload_mb: int = 10
	extraction_mode: str = "itemized"
	currency: str = "AZN"

	@property
	def max_upload_bytes(self) -> int:
		return self.max_upload_mb * 1024 * 1024


def load_settings() -> Settings:
	otlp_endpoint = _env("OTLP_ENDPOINT", None, str)
	loki_url = _env("LOKI_URL", None, str)  # presence toggles json logs, no direct emission

	return Settings(
		log_level=_env("LOG_LEVEL", "INFO", str),
		json_logs=bool(otlp_endpoint or loki_url),
		otlp_endpoint=otlp_endpoint,
		api_key=_env("GEMINI_API_KEY", None, str) or _env("GOOGLE_API_KEY", None, str),
		gemini_model=_env("GEMINI_MODEL", "gemini-2.0-flash-001", str).strip(),
		provider_timeout_secs=_env("PROVIDER_TIMEOUT_SECS", 30, int),
		provider_max_retries=_env("PROVIDER_MAX_RETRIES", 1, int),
		max_upload_mb=_env("MAX_UPLOAD_MB", 10, int),
		extraction_mode=_env("EXTRACTION_MODE", "itemized", _mode),
		currency=_env("CURRENCY", "AZN", str).strip(),
	)
