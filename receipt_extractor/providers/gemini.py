from __future__ import annotations

import logging
from typing import Any

import httpx
from google import genai
from google.genai import errors, types
from opentelemetry import trace
from tenacity import (
	Retrying,
	before_sleep_log,
	retry_if_exception,
	stop_after_attempt,
	wait_exponential_jitter,
)

from ..config import Settings
from ..errors import UpstreamError, UpstreamTimeoutError

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def is_transport_error(exc: BaseException) -> bool:
	# connection drops, timeouts and 5xx are worth one more try; 4xx are not
	return isinstance(exc, (httpx.TransportError, errors.ServerError))


class GeminiProvider:
	name = "gemini"

	def __init__(
		self,
		settings: Settings,
		client: Any | None = None,
		retry_wait_secs: float = 0.5,
	) -> None:
		self.settings = settings
		self._retry_wait_secs = retry_wait_secs
		self._client = client
		if self._client is None and settings.api_key:
			try:
				self._client = genai.Client(
					api_key=settings.api_key,
					http_options=types.HttpOptions(
						timeout=settings.provider_timeout_secs * 1000
					),
				)
			except Exception as e:
				log.debug("gemini client init failed: %s", e)
				self._client = None

	def model_id(self) -> str | None:
		return self.settings.gemini_model

	def available(self) -> tuple[bool, str | None]:
		if self._client is None:
			return False, "missing or invalid GEMINI_API_KEY"
		return True, None

	def generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
		if self._client is None:
			raise UpstreamError("Gemini provider not configured")

		# the SDK base64-encodes inline data on the wire
		img_part = types.Part.from_bytes(data=image_bytes, mime_type=mime_type)
		cfg = types.GenerateContentConfig(
			response_mime_type="application/json",
			temperature=0,
		)
		retrying = Retrying(
			retry=retry_if_exception(is_transport_error),
			stop=stop_after_attempt(self.settings.provider_max_retries + 1),
			wait=wait_exponential_jitter(
				initial=self._retry_wait_secs, max=4, jitter=self._retry_wait_secs
			),
			before_sleep=before_sleep_log(log, logging.WARNING),
			reraise=True,
		)

		with tracer.start_as_current_span("provider.gemini.generate") as span:
			span.set_attribute("llm.provider", self.name)
			span.set_attribute("llm.model", self.model_id() or "")
			span.set_attribute("request.timeout_secs", self.settings.provider_timeout_secs)
			span.set_attribute("request.image_bytes", len(image_bytes))

			try:
				resp = retrying(
					self._client.models.generate_content,
					model=self.model_id(),
					# must use keyword-only for from_text
					contents=[types.Part.from_text(text=prompt), img_part],
					config=cfg,
				)
			except httpx.TimeoutException as exc:
				log.error("gemini call timed out", extra={"error": str(exc)})
				raise UpstreamTimeoutError(
					f"Gemini did not answer within {self.settings.provider_timeout_secs}s"
				) from exc
			except (httpx.HTTPError, errors.APIError) as exc:
				log.error("gemini call failed", extra={"error": str(exc)})
				raise UpstreamError(f"Gemini request failed: {exc}") from exc

			raw = resp.text or ""
			span.set_attribute("response.size_bytes", len(raw.encode("utf-8")))

		log.debug("gemini raw response: %s", raw[:200])
		return raw
