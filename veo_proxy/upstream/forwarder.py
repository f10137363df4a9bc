import json
import logging
from typing import Any, Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse, Response
from opentelemetry import trace
from opentelemetry.trace import Span

from veo_proxy.upstream.config import (
    FORWARDING_CONFIG,
    ForwardingConfig,
    create_upstream_client,
)
from veo_proxy.upstream.json_result import loads_strict, parse_upstream_body
from veo_proxy.upstream.operations import Summary, UpstreamOperation
from veo_proxy.utils.exception_logging import (
    format_exception_message,
    log_exception_with_details,
)
from veo_proxy.utils.traced_requests import traced_request
from veo_proxy.vars import MAX_BODY_BYTES

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

# HTTP forbids a body on these, whatever the upstream sent
BODYLESS_STATUSES = {204, 304}


class InboundBodyError(Exception):
    """The inbound request body cannot be forwarded."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def read_json_body(request: Request, max_bytes: int = MAX_BODY_BYTES) -> Any:
    """
    Read the inbound JSON body. An empty body is forwarded as ``{}``.

    Raises:
        InboundBodyError: 413 when the body exceeds ``max_bytes``,
            400 when it is not valid JSON.
    """
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise InboundBodyError(413, "Request body too large")
    if not body.strip():
        return {}
    try:
        return loads_strict(bytes(body))
    except ValueError:
        raise InboundBodyError(400, "Invalid JSON body")


def _record_summary(span: Span, prefix: str, label: str, summary: Summary) -> None:
    details = {
        k: v for k, v in summary.items() if isinstance(v, (str, bool, int, float))
    }
    if not details:
        return
    for key, value in details.items():
        span.set_attribute(f"proxy.{key}", value)
    rendered = ", ".join(f"{k}={v}" for k, v in details.items())
    logger.info(f"{prefix} {label}: {rendered}")


async def forward_json(
    request: Request,
    access_token: Optional[str],
    operation: UpstreamOperation,
    config: Optional[ForwardingConfig] = None,
) -> Response:
    """
    Forward an inbound JSON request to the upstream operation and relay the result.

    The upstream status code is always relayed as-is. Bodies that are not JSON
    are replaced with a diagnostic payload carrying the raw text. Transport
    failures become a 500 with the failure message. Nothing is retried.
    """
    config = config or FORWARDING_CONFIG
    prefix = f"[{operation.tag}]"

    if not access_token:
        logger.error(f"{prefix} No auth token provided")
        return error_response(401, "No auth token provided")

    try:
        payload = await read_json_body(request)
    except InboundBodyError as e:
        logger.error(f"{prefix} Rejected request body: {e.message}")
        return error_response(e.status_code, e.message)

    upstream_url = config.url_for(operation.path)
    with traced_request(
        tracer,
        operation=operation.name,
        access_token=access_token,
        start_message=f"{prefix} Forwarding to {upstream_url}",
        extra_attrs={"proxy.upstream_url": upstream_url},
    ) as span:
        _record_summary(span, prefix, "Request", operation.describe_request(payload))
        if operation.log_body and logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"{prefix} Request body: {json.dumps(payload, indent=2)}")

        try:
            async with create_upstream_client(config) as client:
                response = await client.post(
                    upstream_url,
                    headers=config.headers_for(access_token),
                    json=payload,
                )
        except httpx.HTTPError as e:
            log_exception_with_details(logger, f"{prefix} Proxy error", e)
            span.set_attribute("proxy.error", type(e).__name__)
            return error_response(500, format_exception_message(e))

        span.set_attribute("proxy.status_code", response.status_code)
        if response.status_code in BODYLESS_STATUSES:
            logger.info(f"{prefix} Response status: {response.status_code} (no body)")
            return Response(status_code=response.status_code)

        body = parse_upstream_body(response.text)
        logger.info(f"{prefix} Response status: {response.status_code}")

        if not body.is_json:
            logger.error(
                f"{prefix} Upstream API response is not valid JSON. "
                f"Status: {response.status_code} Body: {body.raw_text}"
            )
            span.set_attribute("proxy.error", "malformed_response")

        if not response.is_success:
            logger.error(
                f"{prefix} Upstream API error {response.status_code}: "
                f"{json.dumps(body.payload())}"
            )
            if body.is_json:
                span.set_attribute("proxy.error", "upstream_status")
        elif body.is_json:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    f"{prefix} Response data: {json.dumps(body.payload(), indent=2)}"
                )
            _record_summary(
                span, prefix, "Success", operation.summarize_response(body.payload())
            )

        return JSONResponse(status_code=response.status_code, content=body.payload())
