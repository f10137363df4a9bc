from typing import Optional

from fastapi import APIRouter, Depends, Request

from veo_proxy.auth import get_bearer_token
from veo_proxy.upstream import forward_json
from veo_proxy.upstream.operations import (
    IMAGEN_GENERATE,
    IMAGEN_RUN_RECIPE,
    IMAGEN_UPLOAD,
)

router = APIRouter(prefix="/api/imagen", tags=["imagen"])


@router.post("/generate")
async def generate_image(
    request: Request, access_token: Optional[str] = Depends(get_bearer_token)
):
    return await forward_json(request, access_token, IMAGEN_GENERATE)


@router.post("/run-recipe")
async def run_recipe(
    request: Request, access_token: Optional[str] = Depends(get_bearer_token)
):
    return await forward_json(request, access_token, IMAGEN_RUN_RECIPE)


@router.post("/upload")
async def upload_image(
    request: Request, access_token: Optional[str] = Depends(get_bearer_token)
):
    return await forward_json(request, access_token, IMAGEN_UPLOAD)
