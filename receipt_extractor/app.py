from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from .config import SERVICE_NAME, load_settings
from .logging import configure_logging
from .main import create_app
from .version import get_version_info

log = logging.getLogger(__name__)


def serve(host: str = "127.0.0.1", port: int = 8000) -> None:
	settings = load_settings()
	configure_logging(
		service=SERVICE_NAME, json_mode=settings.json_logs, level=settings.log_level
	)
	log.info(
		"Starting receipt-extractor server",
		extra={"host": host, "port": port, **get_version_info()},
	)

	app = create_app(settings)
	# uvicorn handles SIGINT/SIGTERM and drains in-flight requests
	uvicorn.run(app, host=host, port=port, log_config=None)


def main() -> None:
	parser = argparse.ArgumentParser(
		prog="receipt-extractor",
		description="Receipt image to JSON extraction service"
	)
	parser.add_argument(
		"--host",
		default="127.0.0.1",
		help="bind address (default: 127.0.0.1)"
	)
	parser.add_argument(
		"--port",
		type=int,
		default=8000,
		help="HTTP server port (default: 8000)"
	)
	args = parser.parse_args()

	try:
		serve(host=args.host, port=args.port)
	except Exception as e:
		log.error("Server failed to start", extra={"error": str(e)})
		sys.exit(1)


if __name__ == "__main__":
	main()
