"""Read and reload configuration over HTTP."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from layerconf.api.deps import get_configuration
from layerconf.core.errors import ReloadError
from layerconf.root import ConfigurationRoot

logger = structlog.get_logger()

router = APIRouter(prefix="/configuration")


class ValueResponse(BaseModel):
    key: str
    value: str | None


class ReloadResponse(BaseModel):
    message: str


@router.get("/all", response_model=dict[str, str | None])
async def read_all(
    configuration: ConfigurationRoot = Depends(get_configuration),  # noqa: B008
) -> dict[str, str | None]:
    """Every merged entry, keyed by full path."""
    return configuration.as_dict()


@router.get("/value/{key:path}", response_model=ValueResponse)
async def read_value(
    key: str,
    configuration: ConfigurationRoot = Depends(get_configuration),  # noqa: B008
) -> ValueResponse:
    found, value = configuration.lookup(key)
    if not found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Configuration key '{key}' not found",
        )
    return ValueResponse(key=key, value=value)


@router.get("/section/{path:path}")
async def read_section(
    path: str,
    configuration: ConfigurationRoot = Depends(get_configuration),  # noqa: B008
) -> Any:
    """The section hydrated into nested objects and arrays of strings."""
    section = configuration.get_section(path)
    if not section.exists():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Configuration section '{path}' not found",
        )
    return section.to_value()


@router.post("/reload", response_model=ReloadResponse)
async def reload_configuration(
    configuration: ConfigurationRoot = Depends(get_configuration),  # noqa: B008
) -> ReloadResponse:
    try:
        await configuration.reload_async()
    except ReloadError as e:
        logger.error("api_reload_failed", **e.details)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": e.message, **e.details},
        ) from e
    return ReloadResponse(message="Configuration reloaded successfully")
