from __future__ import annotations

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ConfigurationSetting(Base):
    """One configuration row: a top-level key and its JSON blob."""

    __tablename__ = "configuration_settings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(500), nullable=False)
    json_value: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (Index("uq_configuration_settings_key", "key", unique=True),)
