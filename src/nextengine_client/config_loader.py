"""Helpers for building a client from environment configuration.

Values come from the process environment, optionally pre-filled from a
``.env`` file. ``load_config`` reads them fresh on every call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .client import DEFAULT_TIMEOUT, NextEngineClient
from .exceptions import ConfigurationError
from .gcp_secret_storage import GCPSecretTokenStore
from .models import Token
from .token_store import DefaultTokenStore, FileTokenStore, TokenStore

DEFAULT_ENV_FILE = ".env"


@dataclass(frozen=True)
class NextEngineSettings:
    client_id: str
    client_secret: str
    redirect_uri: str
    access_token: str = ""
    refresh_token: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT
    token_file: Optional[str] = None
    tokens_secret_name: Optional[str] = None
    gcp_project_id: Optional[str] = None


def _require(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Missing required setting {name}")
    return value


def load_config(*, env_file: Optional[str] = DEFAULT_ENV_FILE) -> NextEngineSettings:
    """Read settings from ``env_file`` (if it exists) and the environment.

    Variables already set in the environment win over the file.
    """

    if env_file:
        load_dotenv(env_file, override=False)

    timeout = os.getenv("NEXTENGINE_TIMEOUT_SECONDS")
    try:
        timeout_seconds = float(timeout) if timeout else float(DEFAULT_TIMEOUT)
    except ValueError as exc:
        raise ConfigurationError(
            f"NEXTENGINE_TIMEOUT_SECONDS must be a number, got {timeout!r}"
        ) from exc

    return NextEngineSettings(
        client_id=_require("NEXTENGINE_CLIENT_ID"),
        client_secret=_require("NEXTENGINE_CLIENT_SECRET"),
        redirect_uri=_require("NEXTENGINE_REDIRECT_URI"),
        access_token=os.getenv("NEXTENGINE_ACCESS_TOKEN", ""),
        refresh_token=os.getenv("NEXTENGINE_REFRESH_TOKEN", ""),
        timeout_seconds=timeout_seconds,
        token_file=os.getenv("NEXTENGINE_TOKEN_FILE") or None,
        tokens_secret_name=os.getenv("NEXTENGINE_TOKENS_SECRET_NAME") or None,
        gcp_project_id=os.getenv("GCP_PROJECT_ID") or None,
    )


def build_token_store(settings: NextEngineSettings) -> TokenStore:
    """Secret Manager if configured, else a token file, else memory."""

    seed = Token(access_token=settings.access_token, refresh_token=settings.refresh_token)

    if settings.tokens_secret_name and settings.gcp_project_id:
        store: TokenStore = GCPSecretTokenStore(
            settings.gcp_project_id, settings.tokens_secret_name
        )
    elif settings.token_file:
        store = FileTokenStore(settings.token_file)
    else:
        return DefaultTokenStore(seed)

    if seed.has_token_pair and not store.fetch().has_token_pair:
        store.save(seed)
    return store


def build_client(settings: Optional[NextEngineSettings] = None) -> NextEngineClient:
    """Build a ``NextEngineClient`` from ``settings`` (loaded if omitted)."""

    settings = settings or load_config()
    return NextEngineClient(
        settings.client_id,
        settings.client_secret,
        settings.redirect_uri,
        token_store=build_token_store(settings),
        timeout=settings.timeout_seconds,
    )
