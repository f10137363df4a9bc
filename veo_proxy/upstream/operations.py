"""
Upstream operations exposed by the proxy.

Each operation names the upstream path it forwards to plus two optional
diagnostic hooks: ``describe_request`` summarises the inbound payload and
``summarize_response`` summarises a successful upstream payload. Both return
flat dicts that are only logged and attached to the active span; nothing
branches on them.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

Summary = Dict[str, Any]

PROMPT_PREVIEW_CHARS = 100


def dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def _length(value: Any) -> int:
    return len(value) if isinstance(value, (list, str, dict)) else 0


def _no_summary(_payload: Any) -> Summary:
    return {}


def count_operations(payload: Any) -> Summary:
    return {"operations": _length(dig(payload, "operations"))}


def describe_start_image_request(payload: Any) -> Summary:
    first = dig(payload, "requests", 0)
    prompt = dig(first, "textInput", "prompt")
    return {
        "start_image_media_id": dig(first, "startImage", "mediaId"),
        "prompt_preview": prompt[:PROMPT_PREVIEW_CHARS] + "..."
        if isinstance(prompt, str)
        else None,
        "aspect_ratio": dig(first, "aspectRatio"),
    }


def summarize_status(payload: Any) -> Summary:
    first = dig(payload, "operations", 0)
    return {
        "operation_status": dig(first, "status"),
        "done": dig(first, "done"),
    }


def describe_veo_upload(payload: Any) -> Summary:
    return {
        "image_chars": _length(dig(payload, "imageInput", "rawImageBytes")),
        "mime_type": dig(payload, "imageInput", "mimeType"),
        "aspect_ratio": dig(payload, "imageInput", "aspectRatio"),
    }


def extract_media_id(payload: Any) -> Optional[str]:
    """Find the uploaded media identifier in any of the known response shapes."""
    return (
        dig(payload, "result", "data", "json", "result", "uploadMediaGenerationId")
        or dig(payload, "mediaGenerationId", "mediaGenerationId")
        or dig(payload, "mediaId")
    )


def summarize_upload(payload: Any) -> Summary:
    return {"media_id": extract_media_id(payload)}


def summarize_panels(payload: Any) -> Summary:
    return {
        "panels": _length(dig(payload, "imagePanels")),
        "images": _length(dig(payload, "imagePanels", 0, "generatedImages")),
    }


def describe_imagen_upload(payload: Any) -> Summary:
    return {
        "media_category": dig(payload, "uploadMediaInput", "mediaCategory"),
        "raw_bytes_chars": _length(dig(payload, "uploadMediaInput", "rawBytes")),
        "body_keys": ",".join(payload.keys()) if isinstance(payload, dict) else None,
    }


@dataclass(frozen=True)
class UpstreamOperation:
    name: str
    tag: str
    path: str
    describe_request: Callable[[Any], Summary] = _no_summary
    summarize_response: Callable[[Any], Summary] = _no_summary
    # raw image payloads are too large to dump into the log
    log_body: bool = True


VEO_TEXT_TO_VIDEO = UpstreamOperation(
    name="veo_generate_t2v",
    tag="T2V",
    path="/video:batchAsyncGenerateVideoText",
    summarize_response=count_operations,
)
VEO_IMAGE_TO_VIDEO = UpstreamOperation(
    name="veo_generate_i2v",
    tag="I2V",
    path="/video:batchAsyncGenerateVideoStartImage",
    describe_request=describe_start_image_request,
    log_body=False,
    summarize_response=count_operations,
)
VEO_STATUS = UpstreamOperation(
    name="veo_status",
    tag="STATUS",
    path="/video:batchCheckAsyncVideoGenerationStatus",
    summarize_response=summarize_status,
)
VEO_UPLOAD = UpstreamOperation(
    name="veo_upload",
    tag="VEO UPLOAD",
    path=":uploadUserImage",
    describe_request=describe_veo_upload,
    log_body=False,
    summarize_response=summarize_upload,
)
IMAGEN_GENERATE = UpstreamOperation(
    name="imagen_generate",
    tag="IMAGEN",
    path="/whisk:generateImage",
    summarize_response=summarize_panels,
)
IMAGEN_RUN_RECIPE = UpstreamOperation(
    name="imagen_run_recipe",
    tag="IMAGEN RECIPE",
    path="/whisk:runImageRecipe",
    summarize_response=summarize_panels,
)
IMAGEN_UPLOAD = UpstreamOperation(
    name="imagen_upload",
    tag="IMAGEN UPLOAD",
    path=":uploadUserImage",
    describe_request=describe_imagen_upload,
    log_body=False,
    summarize_response=summarize_upload,
)
