from __future__ import annotations

from typing import Protocol


class Provider(Protocol):
	"""Maps (instructions, image) to free-form text. No JSON guarantee."""

	name: str

	def model_id(self) -> str | None: ...
	def available(self) -> tuple[bool, str | None]: ...
	def generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str: ...
