import logging
from contextlib import asynccontextmanager
from typing import Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator

from veo_proxy.routes import router
from veo_proxy.vars import (
    CORS_ALLOW_ORIGINS,
    OTLP_ENDPOINT,
    OTLP_HEADERS,
    PORT,
    SERVICE_NAME,
)

logger = logging.getLogger("uvicorn.error")

VEO_ENDPOINTS = [
    "POST /api/veo/generate-t2v",
    "POST /api/veo/generate-i2v",
    "POST /api/veo/status",
    "POST /api/veo/upload",
    "GET  /api/veo/download-video",
]
IMAGEN_ENDPOINTS = [
    "POST /api/imagen/generate",
    "POST /api/imagen/run-recipe",
    "POST /api/imagen/upload",
]


def log_startup_banner() -> None:
    logger.info("Veo3 & Imagen Proxy Server STARTED")
    logger.info(f"Port: {PORT}")
    logger.info(f"Local: http://localhost:{PORT}")
    logger.info(f"Health: http://localhost:{PORT}/health")
    logger.info(f"CORS: allowed origins {', '.join(CORS_ALLOW_ORIGINS)}")
    logger.info("VEO3 Endpoints:")
    for endpoint in VEO_ENDPOINTS:
        logger.info(f"   {endpoint}")
    logger.info("IMAGEN Endpoints:")
    for endpoint in IMAGEN_ENDPOINTS:
        logger.info(f"   {endpoint}")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    log_startup_banner()
    yield


app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app)


class FilteringSpanExporter(SpanExporter):
    """
    Wrapper exporter that filters out noisy ASGI body spans from streaming responses.
    A single video download would otherwise produce one span per chunk.
    """

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        filtered_spans = [
            span
            for span in spans
            if not (
                span.attributes
                and span.attributes.get("asgi.event.type") == "http.response.body"
            )
        ]
        if filtered_spans:
            return self.exporter.export(filtered_spans)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


trace.set_tracer_provider(
    TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
)
tracer_provider = trace.get_tracer_provider()
if OTLP_ENDPOINT:
    otlp_exporter = OTLPSpanExporter(
        endpoint=OTLP_ENDPOINT,
        headers=OTLP_HEADERS or None,
    )
    tracer_provider.add_span_processor(
        BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
    )

FastAPIInstrumentor.instrument_app(app, excluded_urls="/health,/metrics")

# Add app_name to the metrics
app_info = Info("fastapi_app_info", "Application Info")
app_info.info({"app_name": SERVICE_NAME})

app.include_router(router)
