import importlib.metadata
import os

from .config import SERVICE_NAME

# build metadata is injected by the image build as env vars
BUILD_TIME = os.getenv("BUILD_TIME", "unknown")
GIT_COMMIT = os.getenv("GIT_COMMIT", "unknown")

try:
	VERSION = importlib.metadata.version(SERVICE_NAME)
except importlib.metadata.PackageNotFoundError:
	VERSION = "0.0.0+local"


def get_version_info() -> dict[str, str]:
	return {
		"service": SERVICE_NAME,
		"version": VERSION,
		"build_time": BUILD_TIME,
		"git_commit": GIT_COMMIT,
	}
