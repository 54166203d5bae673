from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import DEFAULT_KV_MOUNT

# Load .env once at import so every settings section sees the same environment
load_dotenv()


class VaultSettings(BaseSettings):
    """Secret store connection settings. Env vars prefixed with VAULT_."""

    model_config = SettingsConfigDict(env_prefix="VAULT_", frozen=True)

    addr: str = "http://127.0.0.1:8200"
    token: str = ""
    timeout: int = Field(5000, gt=0)  # milliseconds
    url: str = ""  # empty = "<addr>/v1"
    cacert: Path | None = None
    kv_mount: str = DEFAULT_KV_MOUNT

    @field_validator("cacert", mode="before")
    @classmethod
    def _empty_cacert_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def base_url(self) -> str:
        """API root, e.g. http://127.0.0.1:8200/v1."""
        return (self.url or f"{self.addr.rstrip('/')}/v1").rstrip("/")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000


class McpSettings(BaseSettings):
    """Gateway listener and auth settings. Env vars prefixed with MCP_."""

    model_config = SettingsConfigDict(env_prefix="MCP_", frozen=True)

    auth_token: str | None = None  # unset/empty = authentication disabled
    tls_key: Path = Path("./certs/mcp-server.key")
    tls_cert: Path = Path("./certs/mcp-server.crt")
    tls_enabled: bool = False
    host: str = "0.0.0.0"
    port: int = Field(3000, gt=0, le=65535)
    cors_origins: str = "*"  # comma-separated origin allow-list

    @field_validator("auth_token", mode="before")
    @classmethod
    def _empty_token_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v:
            return None
        return v

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]


class LogSettings(BaseSettings):
    """Logging output settings. Env vars prefixed with LOG_."""

    model_config = SettingsConfigDict(env_prefix="LOG_", frozen=True)

    level: str = "INFO"
    json_output: bool = Field(False, validation_alias="LOG_JSON")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.strip().upper()
        if level not in allowed:
            msg = f"LOG_LEVEL must be one of {sorted(allowed)} (got '{v}')"
            raise ValueError(msg)
        return level


class Settings(BaseSettings):
    """Root settings composing all sub-configurations."""

    model_config = SettingsConfigDict(extra="ignore", frozen=True)

    vault: VaultSettings = Field(default_factory=VaultSettings)
    mcp: McpSettings = Field(default_factory=McpSettings)
    log: LogSettings = Field(default_factory=LogSettings)


def get_settings() -> Settings:
    """Load and validate settings. Raises ValidationError on invalid values."""
    return Settings()
