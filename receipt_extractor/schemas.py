from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from typing_extensions import Annotated

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def parse_amount(value: Any) -> Decimal | None:
	"""Normalise a number-or-string amount to ``Decimal``.

	Currency symbols, thousands separators and any other non-numeric
	characters are dropped first, so ``"1,234.56 AZN"`` becomes
	``Decimal("1234.56")``. Absent or unparseable values give ``None``.
	"""
	if value is None or isinstance(value, bool):
		return None
	if isinstance(value, (int, float, Decimal)):
		raw = str(value)
	else:
		raw = _NON_NUMERIC.sub("", str(value))
		if not raw:
			return None
	try:
		amount = Decimal(raw)
	except InvalidOperation:
		return None
	if not amount.is_finite():
		return None
	return amount


def _as_text(value: Any) -> str | None:
	if value is None:
		return None
	return str(value)


Amount = Annotated[Optional[Decimal], BeforeValidator(parse_amount)]
Text = Annotated[Optional[str], BeforeValidator(_as_text)]


class LineItemRecord(BaseModel):
	"""One purchased item with the receipt header repeated on it."""

	model_config = ConfigDict(extra="allow")

	filename: Text = None
	store_name: Text = None
	store_address: Text = None
	store_code: Text = None
	taxpayer_name: Text = None
	tax_id: Text = None
	receipt_number: Text = None
	cashier_name: Text = None
	date: Text = None  # DD.MM.YYYY
	time: Text = None  # HH:MM:SS
	item_name: Text = None
	quantity: Amount = None
	unit_price: Amount = None
	line_total: Amount = None
	subtotal: Amount = None
	vat_18_percent: Amount = None
	total_tax: Amount = None
	cashless_payment: Amount = None
	cash_payment: Amount = None
	bonus_payment: Amount = None
	advance_payment: Amount = None
	credit_payment: Amount = None
	queue_number: Text = None
	cash_register_model: Text = None
	cash_register_serial: Text = None
	fiscal_id: Text = None
	fiscal_registration: Text = None
	refund_amount: Amount = None
	refund_date: Text = None
	refund_time: Text = None


class SummaryItem(BaseModel):
	model_config = ConfigDict(extra="allow")

	name: Text = None
	quantity: Amount = None
	price: Amount = None


class ReceiptSummary(BaseModel):
	"""Legacy single-object receipt (``summary`` mode)."""

	model_config = ConfigDict(extra="allow")

	filename: Text = None
	merchant_name: Text = None
	date: Text = None  # YYYY-MM-DD
	time: Text = None  # HH:MM
	items: list[SummaryItem] = Field(default_factory=list)
	subtotal: Amount = None
	tax: Amount = None
	total: Amount = None
	payment_method: Text = None
	address: Text = None


def amount_fields(model: type[BaseModel]) -> tuple[str, ...]:
	return tuple(
		name
		for name, info in model.model_fields.items()
		if Decimal in get_args(info.annotation)
	)


class ViewField(BaseModel):
	label: str
	value: str


class ViewSection(BaseModel):
	title: str
	fields: list[ViewField] = Field(default_factory=list)


class ItemRow(BaseModel):
	name: str
	quantity: str
	unit_price: str
	line_total: str


class ReceiptView(BaseModel):
	layout: Literal["itemized", "summary"]
	title: str
	currency: str
	sections: list[ViewSection] = Field(default_factory=list)
	items: list[ItemRow] = Field(default_factory=list)
	totals: list[ViewField] = Field(default_factory=list)
	warnings: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	error: str
	code: str
	raw_text: Optional[str] = Field(default=None, alias="rawText")
