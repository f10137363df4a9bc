import re
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from fastapi.responses import StreamingResponse
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from veo_proxy.upstream import video_relay
from veo_proxy.upstream.video_relay import (
    download_filename,
    relay_headers,
    relay_video,
    stream_body,
)


def make_upstream(chunks, error=None):
    upstream = Mock(spec=httpx.Response)
    upstream.aclose = AsyncMock()

    async def aiter_bytes():
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error

    upstream.aiter_bytes = aiter_bytes
    return upstream


def test_download_filename():
    assert re.fullmatch(r"monoklix-video-\d{13}\.mp4", download_filename())
    assert download_filename("clip").startswith("clip-")


def test_relay_headers_with_length():
    upstream = httpx.Response(200, headers={"content-length": "1024"})

    headers = relay_headers(upstream, "monoklix-video-1.mp4")

    assert headers == {
        "Content-Disposition": 'inline; filename="monoklix-video-1.mp4"',
        "Accept-Ranges": "bytes",
        "Content-Length": "1024",
    }


def test_relay_headers_without_length():
    headers = relay_headers(httpx.Response(200), "v.mp4")

    assert "Content-Length" not in headers


def test_relay_headers_skip_encoded_length():
    upstream = httpx.Response(
        200, headers={"content-length": "10", "content-encoding": "gzip"}
    )

    assert "Content-Length" not in relay_headers(upstream, "v.mp4")


@pytest.mark.asyncio
async def test_stream_body_yields_chunks_and_closes():
    upstream = make_upstream([b"abc", b"def"])
    client = Mock(spec=httpx.AsyncClient)
    client.aclose = AsyncMock()

    received = [chunk async for chunk in stream_body(upstream, client)]

    assert received == [b"abc", b"def"]
    upstream.aclose.assert_awaited_once()
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_stream_body_error_mid_stream_propagates_and_closes():
    upstream = make_upstream([b"abc"], error=httpx.ReadError("connection reset"))
    client = Mock(spec=httpx.AsyncClient)
    client.aclose = AsyncMock()
    received = []

    with pytest.raises(httpx.ReadError):
        async for chunk in stream_body(upstream, client):
            received.append(chunk)

    assert received == [b"abc"]
    upstream.aclose.assert_awaited_once()
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_relay_video_returns_streaming_response(respx_mock):
    respx_mock.get("https://storage.test/v.mp4").mock(
        return_value=httpx.Response(
            200, content=b"0123456789", headers={"Content-Type": "video/webm"}
        )
    )

    response = await relay_video("https://storage.test/v.mp4")

    assert isinstance(response, StreamingResponse)
    assert response.media_type == "video/webm"
    assert response.headers["content-length"] == "10"
    body = b"".join([chunk async for chunk in response.body_iterator])
    assert body == b"0123456789"


@pytest.mark.asyncio
async def test_relay_video_rejects_missing_url(respx_mock):
    response = await relay_video(None)

    assert response.status_code == 400
    assert respx_mock.calls.call_count == 0


@pytest.mark.asyncio
async def test_relay_video_invalid_url_is_server_error():
    response = await relay_video("not-a-url")

    assert response.status_code == 500


@pytest.mark.asyncio
async def test_stream_body_records_error_and_ends_span():
    error = httpx.ReadError("connection reset")
    upstream = make_upstream([b"abc"], error=error)
    client = Mock(spec=httpx.AsyncClient)
    client.aclose = AsyncMock()
    span = Mock()

    with pytest.raises(httpx.ReadError):
        async for _ in stream_body(upstream, client, span):
            pass

    span.record_exception.assert_called_once_with(error)
    span.set_attribute.assert_any_call("proxy.error", "ReadError")
    span.set_attribute.assert_any_call("proxy.bytes_sent", 3)
    span.end.assert_called_once()


@pytest.mark.asyncio
async def test_relay_video_span_covers_streaming(respx_mock, monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(video_relay, "tracer", provider.get_tracer(__name__))
    respx_mock.get("https://storage.test/v.mp4").mock(
        return_value=httpx.Response(200, content=b"0123456789")
    )

    response = await relay_video("https://storage.test/v.mp4")

    assert exporter.get_finished_spans() == ()
    async for _ in response.body_iterator:
        pass
    (span,) = exporter.get_finished_spans()
    assert span.name == "veo_download_video"
    assert span.attributes["proxy.status_code"] == 200
    assert span.attributes["proxy.bytes_sent"] == 10


@pytest.mark.asyncio
async def test_relay_video_ends_span_on_rejected_fetch(respx_mock, monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(video_relay, "tracer", provider.get_tracer(__name__))
    respx_mock.get("https://storage.test/v.mp4").mock(
        return_value=httpx.Response(404, text="NoSuchKey")
    )

    response = await relay_video("https://storage.test/v.mp4")

    assert response.status_code == 404
    (span,) = exporter.get_finished_spans()
    assert span.attributes["proxy.error"] == "upstream_status"
