"""Configuration management."""

import os
from typing import Any, Dict, Optional
from dotenv import load_dotenv

from ..models.handoff_models import HandoffPolicy


_TRUE_VALUES = {"1", "true", "yes", "on"}


class Config:
    """Configuration manager."""

    def __init__(self, env_file: Optional[str] = None):
        """Initialize configuration.

        Args:
            env_file: Path to .env file
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self):
        """Load configuration from environment variables."""
        # Logging Configuration
        self._config["log_level"] = os.getenv("LOG_LEVEL", "INFO")
        self._config["log_file"] = os.getenv("LOG_FILE", "./logs/task_orchestrator.log")

        # Model Configuration
        self._config["openai_api_key"] = os.getenv("OPENAI_API_KEY", "")
        self._config["openai_base_url"] = os.getenv("OPENAI_BASE_URL") or None
        self._config["model"] = os.getenv("ORCHESTRATOR_MODEL", "gpt-4o-mini")
        self._config["temperature"] = float(
            os.getenv("ORCHESTRATOR_TEMPERATURE", "0.2")
        )

        # Handoff Configuration
        self._config["handoff_max_concurrent"] = int(
            os.getenv("HANDOFF_MAX_CONCURRENT", "5")
        )
        self._config["handoff_default_timeout"] = float(
            os.getenv("HANDOFF_DEFAULT_TIMEOUT", "60")
        )
        self._config["handoff_require_acceptance"] = (
            os.getenv("HANDOFF_REQUIRE_ACCEPTANCE", "false").strip().lower() in _TRUE_VALUES
        )

        # Memory Configuration
        self._config["memory_context_limit"] = int(
            os.getenv("MEMORY_CONTEXT_LIMIT", "10")
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any):
        """Set configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self._config[key] = value

    @property
    def log_level(self) -> str:
        """Get log level."""
        return self._config["log_level"]

    @property
    def log_file(self) -> str:
        """Get log file path."""
        return self._config["log_file"]

    @property
    def openai_api_key(self) -> str:
        """Get OpenAI API key."""
        return self._config["openai_api_key"]

    @property
    def openai_base_url(self) -> Optional[str]:
        """Get OpenAI-compatible base URL."""
        return self._config["openai_base_url"]

    @property
    def model(self) -> str:
        """Get chat model name."""
        return self._config["model"]

    @property
    def temperature(self) -> float:
        """Get sampling temperature."""
        return self._config["temperature"]

    @property
    def memory_context_limit(self) -> int:
        """Get maximum memory entries returned per query."""
        return self._config["memory_context_limit"]

    def handoff_policy(self) -> HandoffPolicy:
        """Build the handoff policy described by this configuration."""
        return HandoffPolicy(
            max_concurrent=self._config["handoff_max_concurrent"],
            default_timeout=self._config["handoff_default_timeout"],
            require_acceptance=self._config["handoff_require_acceptance"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self._config.copy()
