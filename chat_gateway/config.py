"""Configuration management for the chat gateway."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

from chat_gateway.llm.exceptions import MissingCredentialsError

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")

# Map provider names to environment variable names
PROVIDER_KEY_MAP = {
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "groq": "GROQ_API_KEY",
}

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Configuration:
    """Manages configuration and environment variables for the chat gateway."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.load_env()  # Load .env for API keys
        self._config = self._load_yaml_config()

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self.config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @property
    def active_provider(self) -> str:
        """Name of the active LLM provider."""
        return self._config.get("llm", {}).get("active", "openai")

    @property
    def llm_api_key(self) -> str:
        """Get the API key for the active LLM provider.

        The environment is read on every access, so a key exported after
        the configuration was loaded is still picked up.

        Returns:
            The API key as a string.

        Raises:
            ValueError: If the provider has no API key mapping.
            MissingCredentialsError: If the API key is not set.
        """
        active_provider = self.active_provider

        env_key = PROVIDER_KEY_MAP.get(active_provider)
        if not env_key:
            raise ValueError(
                f"Unknown provider '{active_provider}' - no API key mapping found"
            )

        api_key = os.getenv(env_key)
        if not api_key:
            raise MissingCredentialsError(
                f"{env_key} is not configured!",
                env_var=env_key,
                provider=active_provider,
            )

        return api_key

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary.

        Returns:
            The complete configuration dictionary.
        """
        return self._config

    def get_llm_config(self) -> dict[str, Any]:
        """Get active LLM provider configuration from YAML.

        Returns:
            Active LLM provider configuration dictionary.

        Raises:
            ValueError: If the active provider or its base_url is missing.
        """
        providers = self._config.get("llm", {}).get("providers", {})
        active_provider = self.active_provider

        if active_provider not in providers:
            raise ValueError(
                f"Active provider '{active_provider}' not found in providers config"
            )

        provider_config = providers[active_provider]
        if "base_url" not in provider_config:
            raise ValueError(
                f"llm.providers.{active_provider}.base_url must be explicitly "
                "configured in config.yaml"
            )

        return provider_config

    def get_http_client_config(self) -> dict[str, Any]:
        """Get HTTP client configuration for the active LLM provider.

        Returns:
            HTTP client configuration dictionary with validated values.

        Raises:
            ValueError: If required HTTP client parameters are missing or invalid.
        """
        http_config = self.get_llm_config().get("http_client", {})

        required_keys = [
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout"
        ]
        for key in required_keys:
            if key not in http_config:
                raise ValueError(
                    f"http_client.{key} must be explicitly configured "
                    f"for provider '{self.active_provider}' in config.yaml"
                )
            if http_config[key] <= 0:
                raise ValueError(f"http_client.{key} must be positive")

        return {key: http_config[key] for key in required_keys}

    def get_gateway_config(self) -> dict[str, Any]:
        """Get chat completion gateway configuration from YAML.

        Returns:
            Gateway configuration with expensive models and cooldown.

        Raises:
            ValueError: If required gateway parameters are missing or invalid.
        """
        gateway_config = self._config.get("gateway", {})

        required_keys = ["expensive_models", "cooldown_seconds"]
        for key in required_keys:
            if key not in gateway_config:
                raise ValueError(
                    f"gateway.{key} must be explicitly configured in config.yaml"
                )

        expensive_models = gateway_config["expensive_models"] or []
        cooldown_seconds = gateway_config["cooldown_seconds"]

        if not isinstance(expensive_models, list) or not all(
            isinstance(model, str) for model in expensive_models
        ):
            raise ValueError("gateway.expensive_models must be a list of model ids")
        if not isinstance(cooldown_seconds, int | float) or cooldown_seconds < 0:
            raise ValueError("gateway.cooldown_seconds must be non-negative")

        return {
            "expensive_models": list(expensive_models),
            "cooldown_seconds": float(cooldown_seconds),
        }

    def get_queue_config(self) -> dict[str, Any]:
        """Get task queue configuration from YAML.

        Returns:
            Queue configuration dictionary with validated values.

        Raises:
            ValueError: If max_pending is missing or invalid.
        """
        queue_config = self._config.get("queue", {})

        if "max_pending" not in queue_config:
            raise ValueError(
                "queue.max_pending must be explicitly configured in config.yaml "
                "(use null for an unbounded queue)"
            )

        max_pending = queue_config["max_pending"]
        if max_pending is not None and (
            not isinstance(max_pending, int) or max_pending < 1
        ):
            raise ValueError("queue.max_pending must be null or a positive integer")

        return {
            "name": queue_config.get("name", "default"),
            "max_pending": max_pending,
        }

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        Returns:
            Logging configuration dictionary.
        """
        logging_config = {**self._config.get("logging", {})}
        level = str(logging_config.get("level", "INFO")).upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"logging.level must be one of: {VALID_LOG_LEVELS}")
        logging_config["level"] = level
        return logging_config
