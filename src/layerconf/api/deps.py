from __future__ import annotations

from fastapi import HTTPException, Request, status

from layerconf.root import ConfigurationRoot


def get_configuration(request: Request) -> ConfigurationRoot:
    configuration = getattr(request.app.state, "configuration", None)
    if configuration is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Configuration is not initialised",
        )
    return configuration
