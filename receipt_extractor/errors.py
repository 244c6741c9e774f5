"""Error taxonomy shared by intake, extraction and export.

Every error is terminal for the request that raised it. The transport
layer turns them into ``{"error": ..., "code": ..., "rawText": ...}``
bodies using ``status_code`` and ``code``.
"""

from __future__ import annotations


class ReceiptExtractorError(Exception):
	status_code = 500
	code = "INTERNAL"

	def __init__(self, message: str, status_code: int | None = None) -> None:
		super().__init__(message)
		self.message = message
		if status_code is not None:
			self.status_code = status_code


class InvalidInputError(ReceiptExtractorError):
	"""Bad or missing upload, or a record that cannot be exported."""

	status_code = 400
	code = "INVALID_INPUT"


class ConfigurationError(ReceiptExtractorError):
	status_code = 500
	code = "CONFIGURATION_ERROR"


class UpstreamError(ReceiptExtractorError):
	"""The inference call failed in transport or was rejected by the model API."""

	status_code = 502
	code = "UPSTREAM_ERROR"


class UpstreamTimeoutError(UpstreamError):
	status_code = 504
	code = "UPSTREAM_TIMEOUT"


class EmptyResponseError(ReceiptExtractorError):
	status_code = 502
	code = "EMPTY_RESPONSE"


class ParseError(ReceiptExtractorError):
	"""No recovery tier produced valid JSON; ``raw_text`` is what the model said."""

	status_code = 502
	code = "PARSE_ERROR"

	def __init__(self, message: str, raw_text: str) -> None:
		super().__init__(message)
		self.raw_text = raw_text
