from __future__ import annotations

from .errors import InvalidInputError

ITEMIZED_PROMPT = """You are a receipt OCR system. Read every purchased item on this receipt image.

Return a JSON array with one object per purchased item. Every object repeats the
receipt header fields, so each object contains ALL of these keys:
- store_name: name of the store
- store_address: full store address
- store_code: store/object code
- taxpayer_name: name of the taxpayer
- tax_id: taxpayer identification number (VOEN)
- receipt_number: receipt/sale number
- cashier_name: name of the cashier
- date: purchase date, format DD.MM.YYYY
- time: purchase time, format HH:MM:SS
- item_name: name of this item
- quantity: quantity of this item (number)
- unit_price: price of one unit (number)
- line_total: total for this line (number)
- subtotal: receipt subtotal (number)
- vat_18_percent: VAT 18% amount (number)
- total_tax: total tax amount (number)
- cashless_payment: amount paid by card (number)
- cash_payment: amount paid in cash (number)
- bonus_payment: amount paid with bonus (number)
- advance_payment: amount paid in advance (number)
- credit_payment: amount paid on credit (number)
- queue_number: queue number of the receipt for the day
- cash_register_model: model of the cash register
- cash_register_serial: factory serial number of the cash register
- fiscal_id: fiscal identifier
- fiscal_registration: fiscal registration number
- refund_amount, refund_date, refund_time: only when the receipt is a refund

Rules:
- Item names must not start with tax-code prefixes printed by the register
  (for example "*", "A ", "EDV:", "ƏDV:", "18%"); remove them and keep the product name.
- If a quantity is obviously mis-scaled (for example 1000 instead of 1.000 or 0.5),
  correct it using the line total.
- If a unit price is implausible, recompute it as line_total / quantity.
- For every object, line_total must equal quantity * unit_price.
- Use numbers for amounts and quantities, without currency symbols.
- Use null for any field that is not present on the receipt.
- Do not invent items.

Return ONLY valid JSON, no other text."""

SUMMARY_PROMPT = """You are a receipt OCR system. Extract all relevant information from this receipt image and return it as a structured JSON object with the following fields:
- merchant_name: The name of the store/merchant
- date: The date of purchase (format: YYYY-MM-DD)
- time: The time of purchase (format: HH:MM)
- items: An array of items, each with name, quantity, and price
- subtotal: The subtotal amount
- tax: The tax amount
- total: The total amount
- payment_method: The payment method used (if available)
- address: The store address (if available)

Return ONLY valid JSON, no other text."""

PROMPTS = {
	"itemized": ITEMIZED_PROMPT,
	"summary": SUMMARY_PROMPT,
}


def build_prompt(mode: str) -> str:
	try:
		return PROMPTS[mode]
	except KeyError:
		raise InvalidInputError(
			f"unknown extraction mode {mode!r}, expected one of {sorted(PROMPTS)}"
		) from None
