"""
Centralized configuration for the component service.
- Loads from environment variables and an optional app.yaml file.
- Provides typed settings via Pydantic models.
- Exposes helpers for logging and CORS.
"""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Dict, List

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
import yaml

from core.invocation import SDK_VERSION
from middleware.request_id import RequestIDLogFilter

# Ensure .env is loaded early
load_dotenv()

CONFIG_PATH = os.getenv("COMPONENT_SERVICE_CONFIG", os.path.join(os.path.dirname(__file__), "app.yaml"))


class CORSConfig(BaseModel):
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    # the component service only lists metadata (GET) and invokes (POST)
    allow_methods: List[str] = Field(default_factory=lambda: ["GET", "POST"])
    allow_headers: List[str] = Field(default_factory=lambda: ["Content-Type", "X-Request-ID"])
    expose_headers: List[str] = Field(default_factory=lambda: ["X-Request-ID"])
    allow_credentials: bool = False


class FastAPIConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False
    workers: int = 1
    url_prefix: str = "/components"
    # seconds to wait for a component to call back before answering 504
    invocation_timeout: float = 30.0
    cors: CORSConfig = Field(default_factory=CORSConfig)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_format: bool = False

    @field_validator("level")
    def _validate_level(cls, v: str) -> str:
        if not isinstance(logging.getLevelName(v.upper()), int):
            raise ValueError(f"Unknown log level: {v}")
        return v.upper()


class AppMeta(BaseModel):
    app_name: str = "Custom Component Service"
    environment: str = Field(default_factory=lambda: os.getenv("APP_ENV", "dev"))
    sdk_version: str = SDK_VERSION


class Settings(BaseModel):
    meta: AppMeta = Field(default_factory=AppMeta)
    fastapi: FastAPIConfig = Field(default_factory=FastAPIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    # component name -> module exposing `component`
    components: Dict[str, str] = Field(default_factory=dict)


def _load_yaml_config(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _env_override(cfg: dict) -> dict:
    """Override select fields from env; keep simple to avoid surprises."""
    for k_env, section, key in [
        ("APP_ENV", "meta", "environment"),
        ("COMPONENT_SDK_VERSION", "meta", "sdk_version"),
        ("LOG_LEVEL", "logging", "level"),
        ("PORT", "fastapi", "port"),
    ]:
        val = os.getenv(k_env)
        if val is not None:
            cfg.setdefault(section, {})[key] = val
    return cfg


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    merged = _env_override(_load_yaml_config(CONFIG_PATH))
    # Pydantic will coerce nested dicts into typed models
    return Settings(**merged)


# ---- Helpers ---------------------------------------------------------------

def configure_logging(settings: Settings) -> None:
    import sys

    console = logging.StreamHandler(sys.stdout)
    console.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=settings.logging.level,
        format=(
            "%(message)s"
            if settings.logging.json_format
            else "%(asctime)s %(levelname)s %(name)s [%(request_id)s] - %(message)s"
        ),
        handlers=[console],
        force=True,
    )


def build_cors(settings: Settings):
    from fastapi.middleware.cors import CORSMiddleware

    def add(app):
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.fastapi.cors.allow_origins,
            allow_methods=settings.fastapi.cors.allow_methods,
            allow_headers=settings.fastapi.cors.allow_headers,
            allow_credentials=settings.fastapi.cors.allow_credentials,
            expose_headers=settings.fastapi.cors.expose_headers,
        )
        return app

    return add
