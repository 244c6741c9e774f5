from __future__ import annotations

import csv
import io
import json

import pytest

from receipt_extractor.errors import InvalidInputError
from receipt_extractor.export import export_as, export_filename


def _read_csv(content: bytes) -> list[dict[str, str]]:
	return list(csv.DictReader(io.StringIO(content.decode("utf-8"))))


def test_json_export_is_pretty_and_complete(line_items):
	out = export_as(line_items, "json")

	assert out.media_type == "application/json"
	assert out.filename == "receipt-0042.json"
	assert json.loads(out.content) == line_items
	assert out.content.decode("utf-8").startswith('[\n  {\n    "store_name"')


def test_json_export_of_single_object():
	record = {"merchant_name": "Çay Evi", "date": "2024-03-12", "total": 2}
	out = export_as(record, "json")
	assert json.loads(out.content) == record
	assert "Çay Evi" in out.content.decode("utf-8")
	assert out.filename == "receipt-2024-03-12.json"


def test_csv_round_trip_with_embedded_delimiters(line_items):
	line_items[0]["store_address"] = 'Baku,\n"Nizami" str. 10'
	out = export_as(line_items, "csv")

	assert out.media_type == "text/csv"
	assert out.filename == "receipt-0042.csv"

	rows = _read_csv(out.content)
	assert list(rows[0]) == list(line_items[0])
	assert rows == [{k: str(v) for k, v in item.items()} for item in line_items]
	assert rows[1]["item_name"] == "Bread, white"


def test_csv_aligns_later_records_by_key():
	records = [
		{"item_name": "Tea", "quantity": 1},
		{"quantity": 2, "item_name": "Milk", "extra": "dropped"},
		{"item_name": "Salt"},
	]
	rows = _read_csv(export_as(records, "csv").content)
	assert rows == [
		{"item_name": "Tea", "quantity": "1"},
		{"item_name": "Milk", "quantity": "2"},
		{"item_name": "Salt", "quantity": ""},
	]


def test_csv_encodes_nested_values_and_nulls():
	rows = _read_csv(export_as([{"item_name": "Tea", "tags": ["a", "b"], "refund_date": None}], "csv").content)
	assert rows == [{"item_name": "Tea", "tags": '["a", "b"]', "refund_date": ""}]


def test_csv_rejects_summary_records():
	with pytest.raises(InvalidInputError):
		export_as({"merchant_name": "Bravo", "items": []}, "csv")


def test_unknown_format():
	with pytest.raises(InvalidInputError):
		export_as([{"item_name": "Tea"}], "xlsx")


def test_export_rejects_scalars():
	with pytest.raises(InvalidInputError):
		export_as(42, "json")


@pytest.mark.parametrize(
	"record, expected",
	[
		([{"receipt_number": "0042"}], "receipt-0042.csv"),
		({"date": "12.03.2024"}, "receipt-12.03.2024.csv"),
		({"receipt_number": "A/7 B"}, "receipt-A_7_B.csv"),
		({"receipt_number": "../"}, "receipt-data.csv"),
		([{"item_name": "Tea"}], "receipt-data.csv"),
		([], "receipt-data.csv"),
	],
)
def test_export_filename(record, expected):
	assert export_filename(record, "csv") == expected
