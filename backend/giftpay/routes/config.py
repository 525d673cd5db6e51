"""Public, unauthenticated configuration values for the frontend."""

import os

from fastapi import APIRouter

router = APIRouter(tags=["config"])


@router.get("/config")
async def read_public_config():
    return {"subscribe_url": os.getenv("SUBSCRIBE_URL", "")}
