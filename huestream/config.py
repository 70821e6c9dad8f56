"""
Centralized configuration management.

Settings are read, in increasing priority, from:
1) `env.example` (committed, safe placeholders)
2) `env.local` (optional, MUST NOT be committed; holds the bridge credentials)
3) System environment variables (highest priority)

The env files are looked up in the current working directory, on first access.
"""

import os
from functools import lru_cache
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError


class EnvironConfig:
    """
    Singleton configuration class that loads environment variables from env files
    and system environment, providing dictionary-like access with default values.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config = {}
            self._loaded = False
            EnvironConfig._initialized = True

    def _load_config(self):
        root = Path.cwd()

        example_path = root / "env.example"
        if example_path.exists():
            self._config.update(dotenv_values(example_path))
            logger.debug("Loaded environment variables from {}", example_path)

        local_path = root / "env.local"
        if local_path.exists():
            self._config.update(dotenv_values(local_path))
            logger.debug("Loaded and overrode environment variables from {}", local_path)

        self._config.update(os.environ)
        self._loaded = True

    def _ensure_loaded(self):
        if not self._loaded:
            self._load_config()

    def __getitem__(self, key):
        """
        Get configuration value by key.

        Raises:
            KeyError: If key not found
        """
        self._ensure_loaded()
        if key not in self._config:
            raise KeyError(f"Configuration key '{key}' not found")

        return self._config[key]

    def get(self, key, default=None):
        self._ensure_loaded()
        return self._config.get(key, default)

    def clear(self):
        self._config.clear()
        logger.debug("Configuration cleared")

    def reload(self):
        """
        Reload configuration from files and environment.
        Useful for testing or when configuration files change.
        """
        self._config.clear()
        self._load_config()
        get_stream_settings.cache_clear()
        logger.debug("Configuration reloaded")


config = EnvironConfig()


def _env_str(key: str, default: str = "") -> str:
    return (config.get(key) or default).strip()


def _env_flag(key: str, default: str = "false") -> bool:
    return _env_str(key, default).lower() == "true"


class StreamSettings(BaseModel):
    # Bridge address and credentials issued when the Hue user was created
    BRIDGE_HOST: str = Field(default="", description="Hue Bridge IP address")
    USERNAME: str = Field(default="", description="hue-application-key and DTLS PSK identity")
    CLIENT_KEY: str = Field(default="", description="Hex encoded DTLS pre-shared key")
    AREA_ID: str | None = Field(default=None, description="Default entertainment configuration id")

    STREAM_PORT: int = Field(default=2100, gt=0, lt=65536)
    HTTP_TIMEOUT: float = Field(default=10.0, gt=0)
    HANDSHAKE_TIMEOUT: float = Field(default=10.0, gt=0)
    # Capacity of the write-error buffer; errors beyond it are dropped
    ERROR_BUFFER: int = Field(default=10, ge=1)
    # Bridges serve a self-signed certificate
    VERIFY_TLS: bool = False
    DEBUG: bool = False

    @field_validator("CLIENT_KEY")
    @classmethod
    def client_key_is_hex(cls, value: str) -> str:
        value = value.strip()
        if value:
            bytes.fromhex(value)
        return value

    @classmethod
    def from_environ(cls) -> "StreamSettings":
        raw = {
            "BRIDGE_HOST": _env_str("HUESTREAM_BRIDGE_HOST"),
            "USERNAME": _env_str("HUESTREAM_USERNAME"),
            "CLIENT_KEY": _env_str("HUESTREAM_CLIENT_KEY"),
            "AREA_ID": _env_str("HUESTREAM_AREA_ID") or None,
            "STREAM_PORT": _env_str("HUESTREAM_STREAM_PORT") or 2100,
            "HTTP_TIMEOUT": _env_str("HUESTREAM_HTTP_TIMEOUT") or 10.0,
            "HANDSHAKE_TIMEOUT": _env_str("HUESTREAM_HANDSHAKE_TIMEOUT") or 10.0,
            "ERROR_BUFFER": _env_str("HUESTREAM_ERROR_BUFFER") or 10,
            "VERIFY_TLS": _env_flag("HUESTREAM_VERIFY_TLS"),
            "DEBUG": _env_flag("HUESTREAM_DEBUG"),
        }
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(f"Invalid huestream settings: {exc}") from exc

    def require_credentials(self) -> None:
        missing = [
            f"HUESTREAM_{name}"
            for name in ("BRIDGE_HOST", "USERNAME", "CLIENT_KEY")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(
                f"{', '.join(missing)} must be configured. Set them in env.local or environment variables."
            )


@lru_cache
def get_stream_settings() -> StreamSettings:
    return StreamSettings.from_environ()


__all__ = ["EnvironConfig", "StreamSettings", "config", "get_stream_settings"]
