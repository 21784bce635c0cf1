"""Root test configuration."""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import ClassVar

import pytest
import structlog
from pydantic import BaseModel

from layerconf.providers.pushed import SectionSettings


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class Channel(str, Enum):
    EMAIL = "Email"
    SMS = "Sms"


class UserPreferences(BaseModel):
    UseMail: bool = True
    PreferredChannels: list[Channel] = []
    DoNotDisturbPeriod: timedelta = timedelta(hours=8)
    LastUpdated: datetime = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    UserId: int = 42


class NotificationsSettings(BaseModel):
    Enabled: bool = True
    UserSettings: UserPreferences = UserPreferences()


class GeneralSettings(SectionSettings):
    section_name: ClassVar[str] = "General"

    AppName: str = "layerconf"
    Version: str = "1.0"
    MaxItemsPerPage: int = 30
    LoadCount: int = 0


class ThemeSettings(SectionSettings):
    section_name: ClassVar[str] = "User"

    DefaultLanguage: str = "en"
    Theme: str = "dark"


@pytest.fixture
def notifications() -> dict:
    return {
        "Notifications": NotificationsSettings(
            UserSettings=UserPreferences(PreferredChannels=[Channel.EMAIL, Channel.SMS])
        )
    }


@pytest.fixture
def appsettings_json() -> str:
    return """
    {
        "Database": {"Host": "localhost", "Port": 5432, "Timeout": 1.5},
        "Logging": {"LogLevel": {"Default": "Information"}},
        "AllowedHosts": ["a.example.com", "b.example.com"],
        "FeatureFlag": true,
        "Missing": null
    }
    """


@pytest.fixture
def general_settings() -> GeneralSettings:
    return GeneralSettings(AppName="from-push", LoadCount=3)


@pytest.fixture
def theme_settings() -> ThemeSettings:
    return ThemeSettings()
