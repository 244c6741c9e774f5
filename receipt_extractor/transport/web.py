"""Server-rendered upload page and result view."""

from __future__ import annotations

import html
import json
import logging
from typing import Literal, Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, Response

from ..config import Settings
from ..errors import InvalidInputError, ParseError, ReceiptExtractorError
from ..export import export_as
from ..presentation import render, render_html
from ..service import ReceiptService, Upload
from .rest import attachment

log = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to extract receipt data. Please try again."

PAGE = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Receipt Extractor</title></head>
<body>
<main>
<h1>Receipt Extractor</h1>
<p>Upload a receipt image to extract data using AI</p>
<form method="post" action="/" enctype="multipart/form-data">
<input type="file" name="file" accept="image/*" required>
<button type="submit">Extract</button>
</form>
{body}
</main>
</body>
</html>"""


def page(body: str = "", status_code: int = 200) -> HTMLResponse:
	return HTMLResponse(PAGE.format(body=body), status_code=status_code)


def export_forms(record: object) -> str:
	payload = html.escape(json.dumps(record, ensure_ascii=False))
	out = []
	for fmt in ("json", "csv"):
		out.append(
			f'<form method="post" action="/export/{fmt}">'
			f'<textarea name="record" hidden>{payload}</textarea>'
			f'<button type="submit">Export {fmt.upper()}</button></form>'
		)
	return "\n".join(out)


def failure(exc: ReceiptExtractorError) -> HTMLResponse:
	body = f'<p class="error">{html.escape(GENERIC_FAILURE)}</p>'
	if isinstance(exc, InvalidInputError):
		body += f"<p>{html.escape(exc.message)}</p>"
	if isinstance(exc, ParseError):
		body += (
			"<h3>Raw model response</h3>"
			f"<pre>{html.escape(exc.raw_text)}</pre>"
		)
	return page(body, exc.status_code)


def build_web_router(settings: Settings, svc: ReceiptService) -> APIRouter:
	router = APIRouter()

	@router.get("/", response_class=HTMLResponse)
	async def index() -> HTMLResponse:
		return page()

	@router.post("/", response_class=HTMLResponse)
	async def upload(file: Optional[UploadFile] = File(None)) -> HTMLResponse:
		try:
			if file is None:
				raise InvalidInputError("no file provided")
			blob = await file.read()
			record = await run_in_threadpool(
				svc.submit, Upload(file.filename, file.content_type, blob)
			)
			view = render(record, currency=settings.currency)
		except ReceiptExtractorError as e:
			log.warning("upload failed: %s", e, extra={"code": e.code})
			return failure(e)
		except Exception:
			log.exception("upload failed")
			return page(f'<p class="error">{html.escape(GENERIC_FAILURE)}</p>', 500)

		return page(render_html(view) + "\n" + export_forms(record))

	@router.post("/export/{fmt}")
	async def export(fmt: Literal["json", "csv"], record: str = Form(...)) -> Response:
		try:
			try:
				data = json.loads(record)
			except json.JSONDecodeError as exc:
				raise InvalidInputError(f"record is not valid JSON: {exc}") from exc
			return attachment(export_as(data, fmt))
		except ReceiptExtractorError as e:
			return failure(e)

	return router
