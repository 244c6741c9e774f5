from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, Body, File, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from ..config import Settings
from ..errors import ParseError, ReceiptExtractorError
from ..export import ExportFile, export_as
from ..presentation import render
from ..schemas import ErrorResponse, ReceiptView
from ..service import ReceiptService, Upload
from ..version import get_version_info

log = logging.getLogger(__name__)


class Health(BaseModel):
	status: str = "ok"


def http_error(
	code: str, message: str, status: int, raw_text: str | None = None
) -> JSONResponse:
	return JSONResponse(
		status_code=status,
		content=ErrorResponse(error=message, code=code, raw_text=raw_text).model_dump(
			by_alias=True, exclude_none=True
		),
	)


def error_response(exc: ReceiptExtractorError) -> JSONResponse:
	raw_text = exc.raw_text if isinstance(exc, ParseError) else None
	return http_error(exc.code, exc.message, exc.status_code, raw_text)


def attachment(file: ExportFile) -> Response:
	return Response(
		content=file.content,
		media_type=file.media_type,
		headers={"Content-Disposition": f'attachment; filename="{file.filename}"'},
	)


def build_router(settings: Settings, svc: ReceiptService) -> APIRouter:
	router = APIRouter(prefix="/v1")

	@router.get("/health", response_model=Health)
	async def health() -> Health:
		return Health()

	@router.get("/version")
	async def version() -> dict[str, str]:
		return get_version_info()

	@router.post("/receipts/extract")
	async def extract(
		file: Optional[UploadFile] = File(None, description="receipt image"),
		mode: Optional[Literal["itemized", "summary"]] = Query(
			None, description="extraction schema, defaults to EXTRACTION_MODE"
		),
	) -> JSONResponse:
		if file is None:
			return http_error("INVALID_INPUT", "no file provided", 400)

		log.info(
			"received file",
			extra={"upload_filename": file.filename, "content_type": file.content_type},
		)
		blob = await file.read()

		try:
			result = await run_in_threadpool(
				svc.submit, Upload(file.filename, file.content_type, blob), mode
			)
		except ReceiptExtractorError as e:
			log.warning("extraction rejected: %s", e, extra={"code": e.code})
			return error_response(e)
		except Exception:
			log.exception("extraction failed")
			return http_error("INTERNAL", "failed to extract receipt", 500)

		return JSONResponse(result)

	@router.post("/receipts/render", response_model=ReceiptView)
	async def render_record(record: Any = Body(...)) -> Any:
		try:
			return render(record, currency=settings.currency)
		except ReceiptExtractorError as e:
			return error_response(e)

	@router.post("/receipts/export/{fmt}")
	async def export(fmt: Literal["json", "csv"], record: Any = Body(...)) -> Response:
		try:
			return attachment(export_as(record, fmt))
		except ReceiptExtractorError as e:
			return error_response(e)

	return router
