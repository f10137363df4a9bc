import os
from typing import Optional

SERVICE_NAME = os.getenv("SERVICE_NAME", "veo-imagen-proxy")
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3001"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "info").lower()

UPSTREAM_BASE_URL = os.getenv(
    "UPSTREAM_BASE_URL", "https://aisandbox-pa.googleapis.com/v1"
).rstrip("/")
UPSTREAM_ORIGIN = os.getenv("UPSTREAM_ORIGIN", "https://labs.google")
UPSTREAM_REFERER = os.getenv("UPSTREAM_REFERER", "https://labs.google/")


def _parse_optional_seconds(raw: str) -> Optional[float]:
    raw = (raw or "").strip()
    if not raw:
        return None
    value = float(raw)
    return value if value > 0 else None


# Unset means upstream calls wait as long as the transport allows
UPSTREAM_TIMEOUT = _parse_optional_seconds(os.getenv("UPSTREAM_TIMEOUT", ""))

MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", str(50 * 1024 * 1024)))

CORS_ALLOW_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
]

DOWNLOAD_FILENAME_PREFIX = os.getenv("DOWNLOAD_FILENAME_PREFIX", "monoklix-video")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
