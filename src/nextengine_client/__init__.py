"""Next Engine API client with pluggable token persistence."""

from .client import NextEngineClient, new_default_client
from .config_loader import NextEngineSettings, build_client, load_config
from .exceptions import APIError, ConfigurationError, NextEngineError, TokenStoreError
from .gcp_secret_storage import GCPSecretTokenStore
from .models import ERROR, REDIRECT, SUCCESS, APIResponse, Token
from .token_store import DefaultTokenStore, FileTokenStore, TokenStore

__all__ = [
    "NextEngineClient",
    "new_default_client",
    "NextEngineSettings",
    "build_client",
    "load_config",
    "APIError",
    "ConfigurationError",
    "NextEngineError",
    "TokenStoreError",
    "GCPSecretTokenStore",
    "APIResponse",
    "Token",
    "SUCCESS",
    "ERROR",
    "REDIRECT",
    "DefaultTokenStore",
    "FileTokenStore",
    "TokenStore",
]
