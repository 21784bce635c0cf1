from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from layerconf.api.deps import get_configuration
from layerconf.root import ConfigurationRoot

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str = "0.1.0"
    providers: list[str] = []


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check(
    configuration: ConfigurationRoot = Depends(get_configuration),  # noqa: B008
) -> HealthResponse:
    """Basic health check listing the loaded providers."""
    return HealthResponse(
        status="healthy",
        providers=[provider.name for provider in configuration.providers],
    )
