from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .config import Settings, load_settings
from .errors import ReceiptExtractorError
from .logging import configure_logging
from .service import ReceiptService
from .transport.rest import build_router, error_response, http_error
from .transport.web import build_web_router
from .version import VERSION

log = logging.getLogger(__name__)


def setup_tracing(app: FastAPI, settings: Settings) -> None:
	if not settings.otlp_endpoint:
		log.info("tracing disabled (no OTLP_ENDPOINT)")
		return

	resource = Resource.create({"service.name": settings.service})
	provider = TracerProvider(resource=resource)
	exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True)
	provider.add_span_processor(BatchSpanProcessor(exporter))
	trace.set_tracer_provider(provider)

	FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)
	log.info("tracing enabled", extra={"otlp_endpoint": settings.otlp_endpoint})


def create_app(
	settings: Settings | None = None, service: ReceiptService | None = None
) -> FastAPI:
	settings = settings or load_settings()
	configure_logging(
		service=settings.service, json_mode=settings.json_logs, level=settings.log_level
	)
	svc = service or ReceiptService(settings)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		log.info("starting service")
		ok, reason = svc.provider.available()
		if not ok:
			log.warning("provider %s unavailable: %s", svc.provider.name, reason)
		log.info("ready", extra={"model": svc.provider.model_id()})
		yield

	app = FastAPI(title=settings.service, version=VERSION, lifespan=lifespan)
	setup_tracing(app, settings)

	@app.exception_handler(ReceiptExtractorError)
	async def receipt_error_handler(
		request: Request, exc: ReceiptExtractorError
	) -> JSONResponse:
		return error_response(exc)

	@app.exception_handler(RequestValidationError)
	async def validation_error_handler(
		request: Request, exc: RequestValidationError
	) -> JSONResponse:
		message = "; ".join(
			f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
			for err in exc.errors()
		)
		return http_error("INVALID_INPUT", message or "invalid request", 422)

	app.include_router(build_router(settings, svc))
	app.include_router(build_web_router(settings, svc))
	return app
