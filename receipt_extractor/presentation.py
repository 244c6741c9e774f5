from __future__ import annotations

import html
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ValidationError

from .errors import InvalidInputError
from .schemas import (
	ItemRow,
	LineItemRecord,
	ReceiptSummary,
	ReceiptView,
	SummaryItem,
	ViewField,
	ViewSection,
	amount_fields,
	parse_amount,
)

SENTINEL = "0.00"
MISSING = "N/A"
_CENTS = Decimal("0.01")


def _cents(amount: Decimal) -> Decimal | None:
	try:
		return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)
	except InvalidOperation:
		# more digits than the decimal context holds
		return None


def format_money(amount: Decimal | None) -> str:
	if amount is None:
		return SENTINEL
	cents = _cents(amount)
	return SENTINEL if cents is None else str(cents)


def format_currency(value: Any) -> str:
	"""``"1,234.56 AZN"`` -> ``"1234.56"``; absent or garbage -> ``"0.00"``."""
	return format_money(parse_amount(value))


def as_rows(record: Any) -> list[dict[str, Any]]:
	if isinstance(record, dict):
		rows = [record]
	elif isinstance(record, list):
		rows = record
	else:
		raise InvalidInputError("record must be a JSON object or array")

	if not rows:
		raise InvalidInputError("record has no rows")
	if not all(isinstance(r, dict) for r in rows):
		raise InvalidInputError("every record row must be a JSON object")
	return rows


def detect_layout(record: Any) -> str:
	if (
		isinstance(record, dict)
		and isinstance(record.get("items"), list)
		and "item_name" not in record
	):
		return "summary"
	return "itemized"


def _text(value: str | None) -> str:
	return value or MISSING


def _unparsed(raw: dict[str, Any], model: BaseModel, where: str) -> list[str]:
	out = []
	for name in amount_fields(type(model)):
		value = raw.get(name)
		if value in (None, ""):
			continue
		amount = getattr(model, name)
		if amount is None:
			out.append(f"{where}: could not parse {name} {value!r}")
		elif _cents(amount) is None:
			out.append(f"{where}: could not display {name} {value!r}")
	return out


def render(record: Any, currency: str = "AZN") -> ReceiptView:
	"""Build the display layout for a recovered record.

	Pure: the same record always gives the same view. Amounts that are
	present but unreadable are shown as ``0.00`` and listed in
	``warnings``.
	"""
	try:
		if detect_layout(record) == "summary":
			return _render_summary(record, currency)
		return _render_itemized(as_rows(record), currency)
	except ValidationError as exc:
		raise InvalidInputError(
			f"record does not match a receipt layout ({exc.error_count()} errors)"
		) from exc


def _render_itemized(rows: list[dict[str, Any]], currency: str) -> ReceiptView:
	items = [LineItemRecord.model_validate(r) for r in rows]
	warnings: list[str] = []
	for i, (raw, item) in enumerate(zip(rows, items), start=1):
		warnings.extend(_unparsed(raw, item, f"item {i}"))

	first = items[0]

	details = [
		ViewField(label="Receipt Number", value=_text(first.receipt_number)),
		ViewField(label="Date", value=_text(first.date)),
		ViewField(label="Time", value=_text(first.time)),
		ViewField(label="Cashier", value=_text(first.cashier_name)),
		ViewField(label="Queue Number", value=_text(first.queue_number)),
	]
	if first.refund_date or first.refund_time:
		details.append(ViewField(label="Refund Date", value=_text(first.refund_date)))
		details.append(ViewField(label="Refund Time", value=_text(first.refund_time)))

	sections = [
		ViewSection(
			title="Store Information",
			fields=[
				ViewField(label="Store Name", value=_text(first.store_name)),
				ViewField(label="Store Address", value=_text(first.store_address)),
				ViewField(label="Store Code", value=_text(first.store_code)),
				ViewField(label="Taxpayer Name", value=_text(first.taxpayer_name)),
				ViewField(label="Tax ID (VOEN)", value=_text(first.tax_id)),
			],
		),
		ViewSection(title="Receipt Details", fields=details),
		ViewSection(
			title="System Information",
			fields=[
				ViewField(label="Register Model", value=_text(first.cash_register_model)),
				ViewField(label="Register Serial", value=_text(first.cash_register_serial)),
				ViewField(label="Fiscal ID", value=_text(first.fiscal_id)),
				ViewField(
					label="Fiscal Registration", value=_text(first.fiscal_registration)
				),
			],
		),
	]

	totals = [
		ViewField(label="Subtotal", value=format_money(first.subtotal)),
		ViewField(label="VAT 18%", value=format_money(first.vat_18_percent)),
		ViewField(label="Total Tax", value=format_money(first.total_tax)),
		ViewField(label="Cashless", value=format_money(first.cashless_payment)),
		ViewField(label="Cash", value=format_money(first.cash_payment)),
	]
	# rarely used payment kinds only show up when non-zero
	for label, amount in (
		("Bonus", first.bonus_payment),
		("Advance", first.advance_payment),
		("Credit", first.credit_payment),
		("Refund", first.refund_amount),
	):
		if amount is not None and amount > 0:
			totals.append(ViewField(label=label, value=format_money(amount)))

	return ReceiptView(
		layout="itemized",
		title="Receipt Data Extracted",
		currency=currency,
		sections=sections,
		items=[
			ItemRow(
				name=_text(item.item_name),
				quantity=format_money(item.quantity),
				unit_price=format_money(item.unit_price),
				line_total=format_money(item.line_total),
			)
			for item in items
		],
		totals=totals,
		warnings=warnings,
	)


def _render_summary(record: dict[str, Any], currency: str) -> ReceiptView:
	summary = ReceiptSummary.model_validate(record)
	warnings = _unparsed(record, summary, "receipt")
	for i, (raw, item) in enumerate(zip(record["items"], summary.items), start=1):
		if isinstance(raw, dict):
			warnings.extend(_unparsed(raw, item, f"item {i}"))

	return ReceiptView(
		layout="summary",
		title="Receipt Data Extracted",
		currency=currency,
		sections=[
			ViewSection(
				title="Merchant",
				fields=[
					ViewField(label="Merchant", value=_text(summary.merchant_name)),
					ViewField(label="Address", value=_text(summary.address)),
					ViewField(label="Date", value=_text(summary.date)),
					ViewField(label="Time", value=_text(summary.time)),
					ViewField(label="Payment Method", value=_text(summary.payment_method)),
				],
			),
		],
		items=[_summary_row(item) for item in summary.items],
		totals=[
			ViewField(label="Subtotal", value=format_money(summary.subtotal)),
			ViewField(label="Tax", value=format_money(summary.tax)),
			ViewField(label="Total", value=format_money(summary.total)),
		],
		warnings=warnings,
	)


def _summary_row(item: SummaryItem) -> ItemRow:
	# summary receipts print one price per line, no unit price
	return ItemRow(
		name=_text(item.name),
		quantity=format_money(item.quantity),
		unit_price=MISSING,
		line_total=format_money(item.price),
	)


def render_html(view: ReceiptView) -> str:
	"""Render a view as an HTML fragment. All values are escaped."""
	e = html.escape
	cur = e(view.currency)
	out = [f'<section class="receipt"><h2>{e(view.title)}</h2>']

	for section in view.sections:
		out.append(f"<h3>{e(section.title)}</h3><dl>")
		for f in section.fields:
			out.append(f"<dt>{e(f.label)}</dt><dd>{e(f.value)}</dd>")
		out.append("</dl>")

	out.append(f"<h3>Items ({len(view.items)})</h3>")
	out.append(
		"<table><thead><tr><th>Item Name</th><th>Qty</th>"
		"<th>Unit Price</th><th>Total</th></tr></thead><tbody>"
	)
	for row in view.items:
		unit = e(row.unit_price) if row.unit_price == MISSING else f"{e(row.unit_price)} {cur}"
		out.append(
			f"<tr><td>{e(row.name)}</td><td>{e(row.quantity)}</td>"
			f"<td>{unit}</td><td>{e(row.line_total)} {cur}</td></tr>"
		)
	out.append("</tbody></table>")

	out.append("<h3>Payment Summary</h3><dl>")
	for f in view.totals:
		out.append(f"<dt>{e(f.label)}:</dt><dd>{e(f.value)} {cur}</dd>")
	out.append("</dl>")

	if view.warnings:
		out.append('<ul class="warnings">')
		out.extend(f"<li>{e(w)}</li>" for w in view.warnings)
		out.append("</ul>")

	out.append("</section>")
	return "\n".join(out)
