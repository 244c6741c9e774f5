from __future__ import annotations

import csv
import io
import json
import re
from dataclasses import dataclass
from typing import Any

from .errors import InvalidInputError
from .presentation import as_rows, detect_layout

EXPORT_FORMATS = ("json", "csv")

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class ExportFile:
	filename: str
	media_type: str
	content: bytes


def export_filename(record: Any, ext: str) -> str:
	"""``receipt-<receipt_number|date|data>.<ext>``"""
	first = record[0] if isinstance(record, list) and record else record
	ident = None
	if isinstance(first, dict):
		ident = first.get("receipt_number") or first.get("date")
	ident = _UNSAFE.sub("_", str(ident)).strip("._") if ident else ""
	return f"receipt-{ident or 'data'}.{ext}"


def export_json(record: Any) -> ExportFile:
	as_rows(record)  # rejects scalars and empty records
	body = json.dumps(record, indent=2, ensure_ascii=False)
	return ExportFile(
		filename=export_filename(record, "json"),
		media_type="application/json",
		content=body.encode("utf-8"),
	)


def _cell(value: Any) -> Any:
	if value is None:
		return ""
	if isinstance(value, (dict, list)):
		return json.dumps(value, ensure_ascii=False)
	return value


def export_csv(record: Any) -> ExportFile:
	if detect_layout(record) != "itemized":
		raise InvalidInputError("csv export needs itemized records")
	rows = as_rows(record)

	# header follows the first record; later records are matched by key
	fieldnames = list(rows[0])
	buf = io.StringIO()
	writer = csv.DictWriter(
		buf, fieldnames=fieldnames, restval="", extrasaction="ignore"
	)
	writer.writeheader()
	for row in rows:
		writer.writerow({k: _cell(row.get(k)) for k in fieldnames})

	return ExportFile(
		filename=export_filename(record, "csv"),
		media_type="text/csv",
		content=buf.getvalue().encode("utf-8"),
	)


def export_as(record: Any, fmt: str) -> ExportFile:
	if fmt == "json":
		return export_json(record)
	if fmt == "csv":
		return export_csv(record)
	raise InvalidInputError(
		f"unknown export format {fmt!r}, expected one of {list(EXPORT_FORMATS)}"
	)
