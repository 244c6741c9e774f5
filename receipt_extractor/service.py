from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from opentelemetry import trace

from .config import Settings
from .errors import (
	ConfigurationError,
	EmptyResponseError,
	InvalidInputError,
	ParseError,
)
from .parsing import attach_filename, recover_json
from .presentation import render
from .prompts import build_prompt
from .providers.base import Provider
from .providers.gemini import GeminiProvider

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class Upload:
	filename: str | None
	content_type: str | None
	data: bytes


class ReceiptService:
	def __init__(self, settings: Settings, provider: Provider | None = None) -> None:
		self.settings = settings
		self.provider: Provider = provider or GeminiProvider(settings)

	def submit(self, upload: Upload | None, mode: str | None = None) -> Any:
		"""Validate an upload and run extraction on it.

		All input and credential checks happen before the provider is
		touched, so a rejected upload never reaches the network.
		"""
		mode = mode or self.settings.extraction_mode

		if upload is None or not upload.data:
			raise InvalidInputError("no file provided")

		content_type = (upload.content_type or "").lower()
		if not content_type.startswith("image/"):
			raise InvalidInputError(
				f"unsupported content type {upload.content_type!r}, expected an image",
				status_code=415,
			)

		if len(upload.data) > self.settings.max_upload_bytes:
			raise InvalidInputError(
				f"file exceeds {self.settings.max_upload_mb} MB", status_code=413
			)

		ok, reason = self.provider.available()
		if not ok:
			log.error("provider unavailable", extra={"reason": reason})
			raise ConfigurationError("api key not configured")

		return self.extract(upload.data, content_type, upload.filename, mode)

	def extract(
		self,
		image_bytes: bytes,
		mime_type: str,
		filename: str | None = None,
		mode: str = "itemized",
	) -> Any:
		prompt = build_prompt(mode)

		with tracer.start_as_current_span("service.extract") as span:
			span.set_attribute("provider.name", self.provider.name)
			span.set_attribute("provider.model", self.provider.model_id() or "")
			span.set_attribute("extraction.mode", mode)
			t0 = time.perf_counter()

			raw = self.provider.generate(prompt, image_bytes, mime_type)
			if not raw or not raw.strip():
				raise EmptyResponseError("model returned no content")

			try:
				value = recover_json(raw)
			except ParseError:
				log.warning("could not recover json", extra={"raw_text": raw[:500]})
				raise

			# the web page renders what the API returns, so both accept the same shapes
			try:
				render(value, currency=self.settings.currency)
			except InvalidInputError as exc:
				log.warning("unusable model response", extra={"raw_text": raw[:500]})
				raise ParseError(
					f"model response does not match a receipt layout: {exc.message}",
					raw_text=raw,
				) from exc

			value = attach_filename(value, filename)
			records = len(value) if isinstance(value, list) else 1

			span.set_attribute("records.count", records)
			span.set_attribute("elapsed_secs", round(time.perf_counter() - t0, 3))

		log.info(
			"extracted receipt",
			extra={
				"upload_filename": filename,
				"mode": mode,
				"records": records,
			},
		)
		return value
