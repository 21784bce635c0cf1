from layerconf.db.models import Base, ConfigurationSetting
from layerconf.db.store import SqlAlchemyRowStore

__all__ = ["Base", "ConfigurationSetting", "SqlAlchemyRowStore"]
