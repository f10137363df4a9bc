from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from veo_proxy.auth import get_bearer_token
from veo_proxy.upstream import forward_json, relay_video
from veo_proxy.upstream.operations import (
    VEO_IMAGE_TO_VIDEO,
    VEO_STATUS,
    VEO_TEXT_TO_VIDEO,
    VEO_UPLOAD,
)

router = APIRouter(prefix="/api/veo", tags=["veo"])


@router.post("/generate-t2v")
async def generate_text_to_video(
    request: Request, access_token: Optional[str] = Depends(get_bearer_token)
):
    return await forward_json(request, access_token, VEO_TEXT_TO_VIDEO)


@router.post("/generate-i2v")
async def generate_image_to_video(
    request: Request, access_token: Optional[str] = Depends(get_bearer_token)
):
    return await forward_json(request, access_token, VEO_IMAGE_TO_VIDEO)


@router.post("/status")
async def check_video_status(
    request: Request, access_token: Optional[str] = Depends(get_bearer_token)
):
    return await forward_json(request, access_token, VEO_STATUS)


@router.post("/upload")
async def upload_image(
    request: Request, access_token: Optional[str] = Depends(get_bearer_token)
):
    return await forward_json(request, access_token, VEO_UPLOAD)


@router.get("/download-video")
async def download_video(
    request: Request,
    url: Optional[str] = Query(None, description="Video URL to stream back"),
):
    """Stream a generated video through the proxy to avoid browser CORS limits."""
    # a repeated url is ambiguous and treated as missing
    if len(request.query_params.getlist("url")) > 1:
        url = None
    return await relay_video(url)
