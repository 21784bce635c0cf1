from layerconf.api.main import build_default_configuration, create_app

__all__ = ["build_default_configuration", "create_app"]
