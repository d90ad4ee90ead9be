"""Configuration loading for paper-portal."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_OPENREVIEW_VENUES = [
    "ICLR.cc/2024/Conference",
    "NeurIPS.cc/2023/Conference",
    "ICML.cc/2023/Conference",
]


class LLMConfig(BaseModel):
    provider: str = "openai"
    models: list[str] = Field(default_factory=list)
    api_key: str = ""
    base_url: str | None = None
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout_s: float = 60.0

    @property
    def model(self) -> str:
        """Primary model name (first fallback candidate)."""
        return self.models[0] if self.models else ""


class SourceConfig(BaseModel):
    name: str
    enabled: bool = True
    base_url: str | None = None
    timeout_s: float = 10.0
    venues: list[str] = Field(default_factory=list)
    venue_timeout_s: float = 3.0


class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///paper_portal.db"
    echo: bool = False
    timeout_s: float = 5.0


class AppConfig(BaseModel):
    llm: LLMConfig = LLMConfig()
    enhancer_llm: LLMConfig | None = None
    sources: dict[str, SourceConfig] = Field(
        default_factory=lambda: {
            "arxiv": SourceConfig(name="arxiv"),
            "openreview": SourceConfig(
                name="openreview", venues=list(DEFAULT_OPENREVIEW_VENUES)
            ),
        }
    )
    database: DatabaseConfig = DatabaseConfig()
    target_language: str = "Korean"
    default_max_results: int = 20
    search_timeout_s: float = 10.0


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str) -> list[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def _load_llm(prefix: str) -> LLMConfig | None:
    provider = os.getenv(f"{prefix}_PROVIDER")
    if provider is None and prefix != "LLM":
        return None
    provider = provider or "openai"

    models = _env_list(f"{prefix}_MODELS")
    if not models and os.getenv(f"{prefix}_MODEL"):
        models = [os.environ[f"{prefix}_MODEL"].strip()]

    return LLMConfig(
        provider=provider,
        models=models,
        api_key=os.getenv(
            f"{prefix}_API_KEY",
            os.getenv(
                f"{provider.upper()}_API_KEY",
                os.getenv("OPENAI_API_KEY", ""),
            ),
        ),
        base_url=os.getenv(f"{prefix}_BASE_URL") or None,
        temperature=float(os.getenv(f"{prefix}_TEMPERATURE", "0.7")),
        max_tokens=int(os.getenv(f"{prefix}_MAX_TOKENS", "4096")),
        timeout_s=float(os.getenv(f"{prefix}_TIMEOUT_S", "60.0")),
    )


def _database_url(raw: str) -> str:
    # The async engine needs an async driver.
    if raw.startswith("postgresql://"):
        return raw.replace("postgresql://", "postgresql+asyncpg://", 1)
    if raw.startswith("postgres://"):
        return raw.replace("postgres://", "postgresql+asyncpg://", 1)
    if raw.startswith("sqlite:///"):
        return raw.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return raw


def load_config(env_path: str | Path | None = None) -> AppConfig:
    """Load configuration from environment variables (.env file)."""
    if env_path:
        load_dotenv(env_path)
    else:
        load_dotenv()

    source_timeout = float(os.getenv("SOURCE_TIMEOUT_S", "10.0"))
    sources = {
        "arxiv": SourceConfig(
            name="arxiv",
            enabled=_env_bool("ARXIV_ENABLED", True),
            base_url=os.getenv("ARXIV_BASE_URL") or None,
            timeout_s=source_timeout,
        ),
        "openreview": SourceConfig(
            name="openreview",
            enabled=_env_bool("OPENREVIEW_ENABLED", True),
            base_url=os.getenv("OPENREVIEW_BASE_URL") or None,
            timeout_s=source_timeout,
            venues=_env_list("OPENREVIEW_VENUES") or list(DEFAULT_OPENREVIEW_VENUES),
            venue_timeout_s=float(os.getenv("OPENREVIEW_VENUE_TIMEOUT_S", "3.0")),
        ),
    }

    return AppConfig(
        llm=_load_llm("LLM"),
        enhancer_llm=_load_llm("ENHANCER"),
        sources=sources,
        database=DatabaseConfig(
            url=_database_url(
                os.getenv("DATABASE_URL", "sqlite+aiosqlite:///paper_portal.db")
            ),
            echo=_env_bool("DATABASE_ECHO", False),
            timeout_s=float(os.getenv("DATABASE_TIMEOUT_S", "5.0")),
        ),
        target_language=os.getenv("TARGET_LANGUAGE", "Korean"),
        default_max_results=int(os.getenv("DEFAULT_MAX_RESULTS", "20")),
        search_timeout_s=float(os.getenv("SEARCH_TIMEOUT_S", str(source_timeout))),
    )
