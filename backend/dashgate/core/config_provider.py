"""Named configuration sections (deployment config).

The tenant resolver reads its admin credentials through a ConfigProvider
on every call, so credential rotation needs no restart.
"""

from typing import Protocol

import structlog

from dashgate.core.config import Settings, settings
from dashgate.core.errors import ConfigurationError

logger = structlog.stdlib.get_logger(__name__)


class ConfigProvider(Protocol):
    def get_configuration_object(self, section_name: str) -> dict | None:
        """Return the named section, None when absent.

        Raises:
            ConfigurationError: the configuration source itself is unreadable.
        """
        ...


class SettingsConfigProvider:
    """Serves sections from ``Settings.deployment_config`` (DEPLOYMENT_CONFIG env var)."""

    def __init__(self, app_settings: Settings | None = None):
        self._settings = app_settings or settings

    def get_configuration_object(self, section_name: str) -> dict | None:
        sections = self._settings.deployment_config
        if not isinstance(sections, dict):
            raise ConfigurationError("deployment configuration is not a mapping")
        section = sections.get(section_name)
        if section is not None and not isinstance(section, dict):
            raise ConfigurationError(
                f"Configuration section {section_name!r} is not a mapping"
            )
        logger.debug("config_section_read", section=section_name, found=section is not None)
        return section
