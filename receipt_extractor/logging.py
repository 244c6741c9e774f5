from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any

from opentelemetry import trace
from pythonjsonlogger import jsonlogger

from .config import SERVICE_NAME
from .version import VERSION

JSON_FORMAT = "%(timestamp)s %(level)s %(service)s %(name)s %(message)s"
TEXT_FORMAT = "%(levelname)s %(name)s - %(message)s"

# SDK and HTTP client chatter drowns request logs at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "urllib3")
SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

# model output attached to records is cut to this many characters
MAX_FIELD_CHARS = 500


class ReceiptLogFormatter(jsonlogger.JsonFormatter):
	"""One JSON object per line, labelled with service, version and trace."""

	def __init__(
		self,
		*args: Any,
		service: str = SERVICE_NAME,
		version: str = VERSION,
		**kwargs: Any,
	) -> None:
		super().__init__(*args, **kwargs)
		self.service = service
		self.version = version

	def add_fields(
		self,
		log_record: dict[str, Any],
		record: logging.LogRecord,
		message_dict: dict[str, Any],
	):
		super().add_fields(log_record, record, message_dict)

		log_record["timestamp"] = datetime.fromtimestamp(
			record.created, timezone.utc
		).isoformat(timespec="milliseconds")
		log_record["level"] = record.levelname.lower()
		log_record["service"] = log_record.get("service") or self.service
		log_record["version"] = self.version
		for key in ("levelname", "color_message", "asctime"):
			log_record.pop(key, None)

		raw = log_record.get("raw_text")
		if isinstance(raw, str) and len(raw) > MAX_FIELD_CHARS:
			log_record["raw_text"] = raw[:MAX_FIELD_CHARS] + "..."

		ctx = trace.get_current_span().get_span_context()
		if ctx.is_valid:
			log_record["trace_id"] = f"{ctx.trace_id:032x}"
			log_record["span_id"] = f"{ctx.span_id:016x}"

		return log_record


def _is_ours(handler: logging.Handler) -> bool:
	return getattr(handler, "receipt_extractor", False)


def configure_logging(
	service: str = SERVICE_NAME, json_mode: bool = False, level: str = "INFO"
) -> logging.Logger:
	"""Install the stdout handler on the root logger.

	Calling again swaps our handler for a fresh one, so the latest
	settings win. Handlers installed by someone else (pytest's capture,
	an embedding app) are left in place and nothing is added.
	"""
	root = logging.getLogger()
	foreign = [h for h in root.handlers if not _is_ours(h)]

	for name in QUIET_LOGGERS:
		logging.getLogger(name).setLevel(logging.WARNING)
	root.setLevel(level.upper())

	if foreign:
		return logging.getLogger(__name__)

	handler = logging.StreamHandler(sys.stdout)
	handler.receipt_extractor = True
	handler.setFormatter(
		ReceiptLogFormatter(JSON_FORMAT, service=service)
		if json_mode
		else logging.Formatter(fmt=TEXT_FORMAT)
	)
	root.handlers = [handler]

	for name in SERVER_LOGGERS:
		server_log = logging.getLogger(name)
		server_log.handlers = [handler]
		server_log.propagate = False

	return logging.getLogger(__name__)
