"""
Binary relay for generated videos.

Browsers cannot play or download the upstream storage URLs directly because
of cross-origin restrictions, so the proxy fetches the URL itself and streams
the body back as if it were its own resource.
"""

import logging
import time
from typing import AsyncIterator, Dict, Optional

import httpx
from fastapi.responses import JSONResponse, Response, StreamingResponse
from opentelemetry import trace
from opentelemetry.trace import Span

from veo_proxy.upstream.config import (
    FORWARDING_CONFIG,
    ForwardingConfig,
    create_upstream_client,
)
from veo_proxy.upstream.forwarder import error_response
from veo_proxy.utils.exception_logging import (
    format_exception_message,
    log_exception_with_details,
)
from veo_proxy.vars import DOWNLOAD_FILENAME_PREFIX

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

PREFIX = "[DOWNLOAD]"
DEFAULT_CONTENT_TYPE = "video/mp4"


def download_filename(prefix: str = DOWNLOAD_FILENAME_PREFIX) -> str:
    return f"{prefix}-{int(time.time() * 1000)}.mp4"


def relay_headers(upstream: httpx.Response, filename: str) -> Dict[str, str]:
    """Headers sent to the caller for a successful relay (content type excluded)."""
    headers = {
        "Content-Disposition": f'inline; filename="{filename}"',
        "Accept-Ranges": "bytes",
    }
    content_length = upstream.headers.get("content-length")
    # httpx decodes compressed bodies, so an encoded length would not match
    if content_length and not upstream.headers.get("content-encoding"):
        headers["Content-Length"] = content_length
    return headers


async def _close(upstream: httpx.Response, client: httpx.AsyncClient) -> None:
    await upstream.aclose()
    await client.aclose()


async def stream_body(
    upstream: httpx.Response,
    client: httpx.AsyncClient,
    span: Optional[Span] = None,
) -> AsyncIterator[bytes]:
    """
    Yield the upstream body chunk by chunk.

    Headers are already on the wire once the first chunk is requested, so a
    failure here can only be logged and re-raised, which aborts the connection.
    ``span`` is ended once the body is fully sent or the stream fails.
    """
    sent = 0
    try:
        async for chunk in upstream.aiter_bytes():
            sent += len(chunk)
            yield chunk
    except httpx.HTTPError as e:
        log_exception_with_details(
            logger, f"{PREFIX} Error during video stream after {sent} bytes", e
        )
        if span is not None:
            span.record_exception(e)
            span.set_attribute("proxy.error", type(e).__name__)
        raise
    finally:
        await _close(upstream, client)
        if span is not None:
            span.set_attribute("proxy.bytes_sent", sent)
            span.end()
    logger.info(f"{PREFIX} Video stream finished to client ({sent} bytes).")


async def relay_video(
    video_url: Optional[str], config: Optional[ForwardingConfig] = None
) -> Response:
    """
    Fetch ``video_url`` without credentials and stream it back to the caller.

    Returns 400 when no URL is given, the upstream status with a diagnostic
    body when the fetch is rejected, and 500 when the fetch itself fails.
    The ``veo_download_video`` span stays open until the body is streamed.
    """
    config = config or FORWARDING_CONFIG

    if not video_url or not isinstance(video_url, str):
        logger.error(f"{PREFIX} No URL provided")
        return error_response(400, "Video URL is required")

    span = tracer.start_span("veo_download_video")
    streaming = False
    try:
        with trace.use_span(span, end_on_exit=False):
            span.set_attribute("proxy.operation", "veo_download_video")
            span.set_attribute("proxy.upstream_url", video_url)
            logger.info(f"{PREFIX} Fetching and streaming {video_url}")

            client = create_upstream_client(config)
            try:
                upstream = await client.send(
                    client.build_request("GET", video_url), stream=True
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                await client.aclose()
                log_exception_with_details(logger, f"{PREFIX} Proxy error", e)
                span.set_attribute("proxy.error", type(e).__name__)
                return error_response(500, format_exception_message(e))

            span.set_attribute("proxy.status_code", upstream.status_code)

            if not upstream.is_success:
                try:
                    await upstream.aread()
                    details = upstream.text
                except httpx.HTTPError as e:
                    log_exception_with_details(
                        logger, f"{PREFIX} Reading error body failed", e
                    )
                    details = format_exception_message(e)
                finally:
                    await _close(upstream, client)
                logger.error(
                    f"{PREFIX} Failed to fetch video: {upstream.status_code} {upstream.reason_phrase}"
                )
                span.set_attribute("proxy.error", "upstream_status")
                return JSONResponse(
                    status_code=upstream.status_code,
                    content={
                        "error": f"Failed to download: {upstream.reason_phrase}",
                        "details": details,
                    },
                )

            content_type = upstream.headers.get("content-type") or DEFAULT_CONTENT_TYPE
            headers = relay_headers(upstream, download_filename())
            logger.info(
                f"{PREFIX} Video headers received: content-type={content_type} "
                f"content-length={headers.get('Content-Length')}"
            )

            streaming = True
            return StreamingResponse(
                stream_body(upstream, client, span),
                headers=headers,
                media_type=content_type,
            )
    finally:
        # once streaming, stream_body owns the span
        if not streaming:
            span.end()
