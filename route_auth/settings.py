from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Where the route security policy comes from.

    ``security_config_path`` names the YAML file whose schemes and route rules
    ``apply_security_config`` binds at startup; ``title`` becomes the OpenAPI
    document title. Everything is overridable with ``ROUTE_AUTH_*`` env vars.
    """

    model_config = SettingsConfigDict(env_prefix="ROUTE_AUTH_", extra="ignore")

    security_config_path: str | None = None
    log_level: str = "INFO"
    title: str = "Route Auth Demo"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "security_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
