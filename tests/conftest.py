from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from receipt_extractor.config import Settings
from receipt_extractor.main import create_app
from receipt_extractor.service import ReceiptService

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeProvider:
	"""Stands in for Gemini; records every call it receives."""

	name = "fake"

	def __init__(self, response: str = "[]", available: bool = True, error=None) -> None:
		self.response = response
		self.error = error
		self._available = available
		self.calls: list[tuple[str, bytes, str]] = []

	def model_id(self) -> str | None:
		return "fake-model"

	def available(self) -> tuple[bool, str | None]:
		if not self._available:
			return False, "missing or invalid GEMINI_API_KEY"
		return True, None

	def generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
		self.calls.append((prompt, image_bytes, mime_type))
		if self.error is not None:
			raise self.error
		return self.response


@pytest.fixture
def line_items() -> list[dict]:
	header = {
		"store_name": "Bravo",
		"store_address": "Baku, Nizami str. 10",
		"store_code": "BR-001",
		"taxpayer_name": "Bravo Supermarket MMC",
		"tax_id": "1402020141",
		"receipt_number": "0042",
		"cashier_name": "Aysel",
		"date": "12.03.2024",
		"time": "18:25:07",
		"subtotal": "7.30",
		"vat_18_percent": "1.11",
		"total_tax": "1.11",
		"cashless_payment": "7.30",
		"cash_payment": 0,
		"bonus_payment": 0,
		"advance_payment": 0,
		"credit_payment": 0,
		"queue_number": "17",
		"cash_register_model": "NKA-2000",
		"cash_register_serial": "SN123456",
		"fiscal_id": "FISC9",
		"fiscal_registration": "REG77",
	}
	return [
		{**header, "item_name": "Milk 3.2%", "quantity": 2, "unit_price": 1.9, "line_total": 3.8},
		{**header, "item_name": "Bread, white", "quantity": 1, "unit_price": "3.50", "line_total": "3.50 AZN"},
	]


@pytest.fixture
def settings() -> Settings:
	return Settings(api_key="test-key", provider_timeout_secs=5)


@pytest.fixture
def provider(line_items) -> FakeProvider:
	return FakeProvider(response=json.dumps(line_items))


@pytest.fixture
def service(settings, provider) -> ReceiptService:
	return ReceiptService(settings, provider=provider)


@pytest.fixture
def client(settings, service) -> TestClient:
	return TestClient(create_app(settings, service))
