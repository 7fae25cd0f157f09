"""
Configuration module for LLM Translator.

This module handles application settings, environment variable loading and
secure API key storage.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional

import keyring
from loguru import logger
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KEYRING_SERVICE = "llm-translator"
KEYRING_USERNAME = "openai_api_key"


class PromptPreset(BaseModel):
    """Named system prompt."""

    name: str
    system_prompt: str


DEFAULT_PROMPT_PRESETS: Dict[str, PromptPreset] = {
    "general": PromptPreset(
        name="General",
        system_prompt=(
            "You are a translation engine. Translate the user's text to English. "
            "If it is already English, translate it to Russian. "
            "Return only the translation, preserving formatting."
        ),
    ),
    "twitter": PromptPreset(
        name="Twitter",
        system_prompt=(
            "Translate the user's text into casual, concise English suitable for a social media post. "
            "Keep hashtags, mentions and emoji. Return only the translation."
        ),
    ),
    "formal": PromptPreset(
        name="Formal",
        system_prompt=(
            "Translate the user's text into formal, professional English. "
            "Return only the translation."
        ),
    ),
    "academic": PromptPreset(
        name="Academic",
        system_prompt=(
            "Translate the user's text into precise academic English, keeping terminology intact. "
            "Return only the translation."
        ),
    ),
    "creative": PromptPreset(
        name="Creative",
        system_prompt=(
            "Translate the user's text into natural, expressive English, adapting idioms freely. "
            "Return only the translation."
        ),
    ),
}

DEFAULT_HOTKEY_ALTERNATIVES = [
    "ctrl+shift+t",
    "ctrl+alt+t",
    "alt+shift+t",
    "ctrl+shift+l",
    "ctrl+alt+l",
    "alt+shift+l",
]


class Settings(BaseSettings):
    """Application settings model with validation."""

    # API Settings
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key (stored securely)")
    api_endpoint: str = Field(default="https://api.openai.com/v1", description="OpenAI-compatible base URL")
    model: str = Field(default="gpt-4.1-nano", description="Translation model")
    temperature: float = Field(default=0.3, description="Sampling temperature")
    max_retries: int = Field(default=3, description="Maximum attempts per request")
    api_timeout: int = Field(default=30, description="API request timeout in seconds")
    retry_base_delay: float = Field(default=0.1, description="First retry delay in seconds")
    retry_max_delay: float = Field(default=10.0, description="Maximum retry delay in seconds")
    retry_jitter: float = Field(default=0.1, description="Maximum random jitter added to retry delays")

    # Hotkeys
    translate_hotkey: str = Field(default="ctrl+shift+t", description="Copy-translate hotkey")
    cancel_hotkey: str = Field(default="ctrl+shift+x", description="Cancel pending translations")
    hotkey_alternatives: List[str] = Field(
        default_factory=lambda: list(DEFAULT_HOTKEY_ALTERNATIVES),
        description="Fallback hotkeys, tried in order",
    )

    # Prompts
    active_prompt: str = Field(default="general", description="Active prompt preset id")
    prompt_presets: Dict[str, PromptPreset] = Field(
        default_factory=lambda: dict(DEFAULT_PROMPT_PRESETS), description="Prompt presets by id"
    )

    # Limits
    max_text_length: int = Field(default=5000, description="Maximum text length in characters")
    max_tokens_estimate: int = Field(default=1250, description="Maximum estimated tokens")
    requests_per_minute: int = Field(default=30, description="Requests allowed per minute")
    requests_per_day: int = Field(default=500, description="Requests allowed per UTC day")
    clipboard_timeout_ms: int = Field(default=500, description="Clipboard change detection timeout")
    clipboard_poll_interval_ms: int = Field(default=10, description="Clipboard poll interval")

    # Behavior
    preserve_clipboard: bool = Field(default=True, description="Restore clipboard after translating")
    paste_result: bool = Field(default=True, description="Paste the translation over the selection")
    auto_split_long_text: bool = Field(default=False, description="Split long text into chunks")
    chunk_size: int = Field(default=2000, description="Chunking threshold and maximum chunk size")
    max_split_text_length: int = Field(default=20000, description="Maximum text length when splitting")
    chunk_concurrency: int = Field(default=1, description="Chunks translated concurrently")

    # Pipeline
    cache_enabled: bool = Field(default=True, description="Enable caching")
    cache_ttl: int = Field(default=300, description="Cache TTL in seconds")
    max_cache_size: int = Field(default=100, description="Maximum cache size")
    queue_max_size: int = Field(default=16, description="Maximum pending translations")
    short_text_threshold: int = Field(default=500, description="Texts up to this length get high priority")
    max_concurrent_requests: int = Field(default=2, description="Translations processed concurrently")

    # General Settings
    show_notifications: bool = Field(default=True, description="Show notifications")

    # Logging Settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=True, description="Log to file")
    max_log_size: int = Field(default=10, description="Max log file size in MB")

    model_config = SettingsConfigDict(
        env_prefix="LLM_TRANSLATOR_",
        env_file=".env",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError("temperature must be between 0.0 and 2.0")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("max_retries must be between 1 and 10")
        return v

    @field_validator("api_timeout")
    @classmethod
    def validate_api_timeout(cls, v: int) -> int:
        if v < 5 or v > 300:
            raise ValueError("api_timeout must be between 5 and 300 seconds")
        return v

    @field_validator("clipboard_timeout_ms")
    @classmethod
    def validate_clipboard_timeout(cls, v: int) -> int:
        """Validate clipboard timeout (ms). Must be between 100 and 5000."""
        if v < 100 or v > 5000:
            raise ValueError("clipboard_timeout_ms must be between 100 and 5000")
        return v

    @field_validator(
        "max_text_length",
        "max_tokens_estimate",
        "requests_per_minute",
        "requests_per_day",
        "clipboard_poll_interval_ms",
        "chunk_size",
        "chunk_concurrency",
        "max_cache_size",
        "queue_max_size",
        "max_concurrent_requests",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be a positive integer")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @model_validator(mode="after")
    def validate_active_prompt(self) -> "Settings":
        if self.active_prompt not in self.prompt_presets:
            raise ValueError(f"Active prompt '{self.active_prompt}' is not a known preset")
        return self

    def get_system_prompt(self, prompt_id: Optional[str] = None) -> str:
        return self.prompt_presets[prompt_id or self.active_prompt].system_prompt

    def prompt_map(self) -> Dict[str, str]:
        return {prompt_id: preset.system_prompt for prompt_id, preset in self.prompt_presets.items()}


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings instance, loading it on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
        if not _settings.openai_api_key:
            _settings.openai_api_key = load_api_key()
    return _settings


def get_config_path() -> Path:
    """Get the configuration directory path."""
    return Path.home() / ".llm-translator"


def ensure_config_dir() -> Path:
    """Ensure the configuration directory exists."""
    config_path = get_config_path()
    config_path.mkdir(exist_ok=True)
    return config_path


def load_api_key() -> Optional[str]:
    """Load the API key from keyring."""
    try:
        return keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME)
    except Exception as e:
        logger.warning(f"Failed to load API key from keyring: {e}")
        return None


def save_api_key(api_key: str) -> bool:
    """Save the API key to keyring."""
    try:
        keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, api_key)
        logger.info("API key saved to keyring")
        return True
    except Exception as e:
        logger.error(f"Failed to save API key to keyring: {e}")
        return False


def delete_api_key() -> bool:
    """Delete the API key from keyring."""
    try:
        keyring.delete_password(KEYRING_SERVICE, KEYRING_USERNAME)
        logger.info("API key deleted from keyring")
        return True
    except Exception as e:
        logger.warning(f"Failed to delete API key from keyring: {e}")
        return False


def validate_api_key_format(api_key: str) -> bool:
    """Check that an API key looks like an OpenAI key."""
    if not api_key:
        return False
    return bool(re.match(r"^sk-[A-Za-z0-9_\-]{20,}$", api_key.strip()))


__all__ = [
    "Settings",
    "PromptPreset",
    "DEFAULT_PROMPT_PRESETS",
    "DEFAULT_HOTKEY_ALTERNATIVES",
    "get_settings",
    "get_config_path",
    "ensure_config_dir",
    "load_api_key",
    "save_api_key",
    "delete_api_key",
    "validate_api_key_format",
]
