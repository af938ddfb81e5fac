"""
Configuration management for EduLog.
Loads from config/edulog.yaml and environment variables.
"""

from pathlib import Path
from typing import Optional, Dict, Any
import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field


class LLMConfig(BaseSettings):
    """Text normalization provider configuration."""
    provider: str = Field(default="gemini")  # gemini, openai, anthropic
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"),
    )
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    model: str = Field(default="gemini-3-flash-preview", alias="LLM_MODEL")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models"
    )
    temperature: float = Field(default=0.4)
    top_p: float = Field(default=0.8)
    max_output_tokens: int = Field(default=1000)
    min_key_length: int = Field(default=5)

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True
    )


class HttpConfig(BaseSettings):
    """Outbound HTTP configuration (roster fetch, record push, LLM REST)."""
    # None disables timeouts: network calls run until they resolve
    timeout: Optional[float] = Field(default=None)
    follow_redirects: bool = Field(default=True)

    model_config = SettingsConfigDict(env_prefix="HTTP_", extra="ignore")


class ApiConfig(BaseSettings):
    """API server configuration."""
    host: str = Field(default="127.0.0.1", alias="API_HOST")
    port: int = Field(default=8000, alias="API_PORT")
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore", populate_by_name=True)


class EduLogSettings(BaseSettings):
    """Main EduLog configuration."""
    env: str = Field(default="dev", alias="EDULOG_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=Path("logs/edulog.log"), alias="LOG_FILE")

    # Sub-configurations
    api: ApiConfig = Field(default_factory=ApiConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)

    # Local durable slots
    storage_path: Path = Field(default=Path("data/edulog.sqlite"), alias="EDULOG_STORAGE_PATH")

    # Record defaults
    timezone: str = Field(default="Asia/Seoul", alias="EDULOG_TIMEZONE")
    record_type: str = Field(default="관찰")
    default_class_name: str = Field(default="2-1")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="allow"
    )

    @classmethod
    def load_from_yaml(cls, config_path: Optional[Path] = None) -> "EduLogSettings":
        """Load settings from YAML file and merge with environment variables."""
        if config_path is None:
            config_path = Path("config/edulog.yaml")

        config_dict: Dict[str, Any] = {}

        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
                config_dict = yaml_data.get("edulog", {})

        # Sub-sections are rebuilt so env vars still apply underneath yaml values
        for section, model in (("api", ApiConfig), ("llm", LLMConfig), ("http", HttpConfig)):
            if isinstance(config_dict.get(section), dict):
                config_dict[section] = model(**config_dict[section])

        return cls(**config_dict)


# Global settings instance
_settings: Optional[EduLogSettings] = None


def get_settings() -> EduLogSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = EduLogSettings.load_from_yaml()
    return _settings


# Alias for convenience
settings = get_settings()
