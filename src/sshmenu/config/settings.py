"""Configuration management for sshmenu.

Loads settings from a YAML configuration file with environment variable
overrides (``SSHMENU_SERVER__PORT=2222`` and so on). Supports .env files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from sshmenu.domain.models import MenuOption

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/sshmenu.yaml")

DEFAULT_INFO = (
    "I'm a senior software engineer who loves to tinker with code across the "
    "board. Most of my time goes into building stuff with TypeScript, React, "
    "and Next.js, but I also dive into PHP for WordPress plugins when needed. "
    "On the side, I mess around with C++ and Go just for fun; keeps things "
    "interesting and keeps me learning."
)
DEFAULT_CONTACT = "cmateusz@protonmail.com"


def _default_options() -> list[MenuOption]:
    return [
        MenuOption(label="info", detail=DEFAULT_INFO),
        MenuOption(label="contact", detail=DEFAULT_CONTACT),
    ]


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=23234, ge=1, le=65535)
    host_key_path: Path = Field(
        default=Path("data/host_key"),
        description="Private host key; generated on first start if missing",
    )
    handshake_timeout: float = Field(default=10.0, gt=0)
    shutdown_timeout: float = Field(default=30.0, gt=0)
    require_pty: bool = Field(default=True)


class MenuConfig(BaseModel):
    title: str = Field(default="czpl.dev WIP")
    options: list[MenuOption] = Field(default_factory=_default_options, min_length=1)
    tick_interval: float = Field(default=0.1, gt=0, description="Spinner frame interval in seconds")
    wrap_padding: int = Field(default=10, ge=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the sshmenu server.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "SSHMENU_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    menu: MenuConfig = Field(default_factory=MenuConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs; the environment wins over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
