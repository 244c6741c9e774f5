"""Recover a JSON value from free-form model output.

Models asked for "JSON only" still wrap answers in prose or markdown
fences. Recovery runs an ordered chain of extractors, each a pure
``text -> candidate | None`` function, and returns the first candidate
that ``json.loads`` accepts.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Optional

from .errors import ParseError

log = logging.getLogger(__name__)

Extractor = Callable[[str], Optional[str]]

# greedy: first opener to last closer
_ARRAY_SPAN = re.compile(r"\[[\s\S]*\]")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


def any_array_span(text: str) -> str | None:
	m = _ARRAY_SPAN.search(text)
	return m.group(0) if m else None


def array_span(text: str) -> str | None:
	m = _ARRAY_SPAN.search(text)
	if m is None:
		return None
	# an array nested inside an object belongs to the object tier
	brace = text.find("{")
	if brace != -1 and brace < m.start():
		return None
	return m.group(0)


def object_span(text: str) -> str | None:
	m = _OBJECT_SPAN.search(text)
	return m.group(0) if m else None


def whole_text(text: str) -> str | None:
	return text


EXTRACTORS: tuple[tuple[str, Extractor], ...] = (
	("array", array_span),
	("object", object_span),
	# braces in surrounding prose can break the object tier
	("any-array", any_array_span),
	("raw", whole_text),
)


def recover_json(
	text: str, extractors: tuple[tuple[str, Extractor], ...] = EXTRACTORS
) -> Any:
	"""Return the first JSON value any extractor yields from ``text``.

	Raises ``ParseError`` carrying ``text`` when every tier fails.
	"""
	last_error: Exception | None = None
	for name, extract in extractors:
		candidate = extract(text)
		if candidate is None:
			continue
		try:
			value = json.loads(candidate)
		except json.JSONDecodeError as exc:
			log.debug("recovery tier %s failed: %s", name, exc)
			last_error = exc
			continue
		log.debug("recovered json via %s tier", name)
		return value

	raise ParseError(
		f"model response is not valid JSON: {last_error}", raw_text=text
	)


def attach_filename(value: Any, filename: str | None) -> Any:
	"""Stamp the upload's filename on the record(s), first key wins column order."""
	if filename is None:
		return value
	if isinstance(value, list):
		return [_with_filename(el, filename) for el in value]
	return _with_filename(value, filename)


def _with_filename(el: Any, filename: str) -> Any:
	if not isinstance(el, dict):
		return el
	out: dict[str, Any] = {"filename": filename}
	out.update((k, v) for k, v in el.items() if k != "filename")
	return out
