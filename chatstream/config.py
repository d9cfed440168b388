"""Configuration management for the chatstream client."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

from chatstream.llm.models import DEFAULT_COMPLETIONS_PATH, ClientConfig

CONFIG_PATH_ENV = "CHATSTREAM_CONFIG"
BASE_URL_ENV = "CHATSTREAM_BASE_URL"
API_KEY_ENV = "CHATSTREAM_API_KEY"

MAX_TEMPERATURE = 2.0


class Configuration:
    """Manages configuration and environment variables for the client."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for API keys and overrides
        self.config_path = (
            config_path
            or os.getenv(CONFIG_PATH_ENV)
            or os.path.join(os.path.dirname(__file__), "config.yaml")
        )
        self._config = self._load_yaml_config(self.config_path)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @staticmethod
    def _load_yaml_config(config_path: str) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    def get_client_config(self) -> ClientConfig:
        """Get the chat-completions client configuration.

        ``CHATSTREAM_BASE_URL`` overrides ``client.base_url`` and
        ``CHATSTREAM_API_KEY`` supplies the bearer token.

        Returns:
            Validated ClientConfig.

        Raises:
            ValueError: If required client parameters are missing or invalid.
        """
        client_config = self._config.get("client", {})
        if not isinstance(client_config, dict):
            raise ValueError("client must be a mapping in config.yaml")

        base_url = os.getenv(BASE_URL_ENV) or client_config.get("base_url")
        if not base_url:
            raise ValueError(
                "client.base_url must be explicitly configured in config.yaml "
                f"or through {BASE_URL_ENV}"
            )

        model = client_config.get("model")
        if not model:
            raise ValueError(
                "client.model must be explicitly configured in config.yaml"
            )

        temperature = client_config.get("temperature")
        if temperature is not None and not (
            isinstance(temperature, int | float)
            and 0 <= temperature <= MAX_TEMPERATURE
        ):
            raise ValueError(
                f"client.temperature must be between 0 and {MAX_TEMPERATURE}"
            )

        completions_path = client_config.get(
            "completions_path", DEFAULT_COMPLETIONS_PATH
        )
        if not isinstance(completions_path, str) or not completions_path.startswith("/"):
            raise ValueError(
                "client.completions_path must be a non-empty path starting with '/'"
            )

        timeouts = self._get_timeouts(client_config.get("timeouts"))

        return ClientConfig(
            base_url=base_url,
            default_model=model,
            completions_path=completions_path,
            api_key=os.getenv(API_KEY_ENV) or None,
            default_temperature=temperature,
            connect_timeout=timeouts["connect"],
            read_timeout=timeouts["read"],
            write_timeout=timeouts["write"],
            pool_timeout=timeouts["pool"],
        )

    @staticmethod
    def _get_timeouts(timeouts_config: Any) -> dict[str, float]:
        """Validate timeout values, filling unset ones with defaults."""
        defaults = {
            "connect": ClientConfig.connect_timeout,
            "read": ClientConfig.read_timeout,
            "write": ClientConfig.write_timeout,
            "pool": ClientConfig.pool_timeout,
        }
        if timeouts_config is None:
            timeouts_config = {}
        if not isinstance(timeouts_config, dict):
            raise ValueError("client.timeouts must be a mapping in config.yaml")
        timeouts = {**defaults, **timeouts_config}

        for key, value in timeouts.items():
            if key not in defaults:
                raise ValueError(f"client.timeouts.{key} is not a known timeout")
            if not isinstance(value, int | float) or value <= 0:
                raise ValueError(f"client.timeouts.{key} must be positive")

        return {key: float(value) for key, value in timeouts.items()}

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        An empty ``logging:`` section falls back to the defaults.

        Returns:
            Logging configuration dictionary.

        Raises:
            ValueError: If the section is not a mapping or the level is not a string.
        """
        logging_config = self._config.get("logging")
        if logging_config is None:
            logging_config = {}
        if not isinstance(logging_config, dict):
            raise ValueError("logging must be a mapping in config.yaml")

        merged = {"level": "INFO", **logging_config}
        if not isinstance(merged["level"], str) or not merged["level"]:
            raise ValueError("logging.level must be a level name such as INFO")
        return merged
