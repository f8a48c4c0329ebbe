"""Runtime configuration for the Financial Analyzer.

Values are read from Streamlit secrets first, then the environment (a local
``.env`` file is honoured), then the defaults below.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping

from dotenv import find_dotenv, load_dotenv

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

PROVIDERS = ("openai", "gemini")


@dataclass(frozen=True)
class Settings:
    """Resolved application settings."""

    provider: str = "openai"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    max_files_per_category: int = 10
    image_max_dimension: int = 1024
    image_quality: int = 70
    cache_size: int = 32
    pdf_font_path: str | None = None
    log_level: str = "INFO"

    @property
    def api_key(self) -> str | None:
        return self.gemini_api_key if self.provider == "gemini" else self.openai_api_key

    @property
    def model(self) -> str:
        return self.gemini_model if self.provider == "gemini" else self.openai_model


def _streamlit_secrets() -> Mapping[str, Any]:
    import streamlit as st

    # st.secrets raises when no secrets.toml exists; treat that as "no secrets"
    try:
        return dict(st.secrets)
    except Exception:
        return {}


def _lookup(name: str, secrets: Mapping[str, Any]) -> str | None:
    value = secrets.get(name)
    if value in (None, ""):
        value = os.getenv(name)
    if value in (None, ""):
        return None
    return str(value).strip()


def _int_setting(name: str, secrets: Mapping[str, Any], default: int) -> int:
    raw = _lookup(name, secrets)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, received: {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, received: {value}")
    return value


def load_settings(secrets: Mapping[str, Any] | None = None) -> Settings:
    """Build :class:`Settings` from secrets and the environment.

    Pass ``secrets`` explicitly (e.g. ``{}``) to skip the Streamlit lookup.
    """

    load_dotenv(find_dotenv(usecwd=True))
    if secrets is None:
        secrets = _streamlit_secrets()

    provider = (_lookup("AI_PROVIDER", secrets) or "openai").lower()
    if provider not in PROVIDERS:
        raise ValueError(f"AI_PROVIDER must be one of {PROVIDERS}, received: {provider!r}")

    defaults = Settings()
    return Settings(
        provider=provider,
        openai_api_key=_lookup("OPENAI_API_KEY", secrets),
        openai_model=_lookup("LLM_MODEL", secrets) or defaults.openai_model,
        gemini_api_key=_lookup("GEMINI_API_KEY", secrets),
        gemini_model=_lookup("GEMINI_MODEL", secrets) or defaults.gemini_model,
        max_files_per_category=_int_setting(
            "MAX_FILES_PER_CATEGORY", secrets, defaults.max_files_per_category
        ),
        image_max_dimension=_int_setting("IMAGE_MAX_DIMENSION", secrets, defaults.image_max_dimension),
        image_quality=_int_setting("IMAGE_QUALITY", secrets, defaults.image_quality),
        cache_size=_int_setting("ANALYSIS_CACHE_SIZE", secrets, defaults.cache_size),
        pdf_font_path=_lookup("PDF_FONT_PATH", secrets),
        log_level=(_lookup("LOG_LEVEL", secrets) or defaults.log_level).upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install the root logging handler used by the app and the CLI."""

    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
