"""Token persistence backends.

Implement :class:`TokenStore` to keep tokens in a database, a web session or
any other backend, then hand the instance to ``NextEngineClient``.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from .exceptions import TokenStoreError
from .models import Token

logger = logging.getLogger("nextengine-token-store")


class TokenStore(ABC):
    """Read/write access to the current API token."""

    @abstractmethod
    def fetch(self) -> Token:
        """Return the token to attach to the next API call."""

    @abstractmethod
    def save(self, token: Token) -> None:
        """Persist a (possibly partial) token update."""


class DefaultTokenStore(TokenStore):
    """Keeps the token in process memory.

    ``save`` merges field by field so a response carrying only some of the
    fields never clears the others. Each call is atomic; a fetch followed by
    a save from two threads is not, so share one store across threads only
    if stale reads are acceptable.
    """

    def __init__(self, token: Optional[Token] = None) -> None:
        self._token = replace(token) if token is not None else Token()
        self._lock = threading.Lock()

    def fetch(self) -> Token:
        with self._lock:
            return replace(self._token)

    def save(self, token: Token) -> None:
        with self._lock:
            self._token = self._token.merged_with(token)


class FileTokenStore(TokenStore):
    """Stores the token as JSON on local disk.

    ``save`` reads, merges and rewrites the file without locking; two
    processes or threads saving at once can lose one update, so serialize
    writers externally.
    """

    def __init__(self, token_file: Union[str, Path]) -> None:
        self._token_file = Path(token_file).expanduser().resolve()

    @property
    def token_file(self) -> Path:
        return self._token_file

    def fetch(self) -> Token:
        if not self._token_file.exists():
            logger.debug("No token file at %s", self._token_file)
            return Token()
        try:
            return Token.from_dict(json.loads(self._token_file.read_text()))
        except (OSError, ValueError, AttributeError) as exc:
            raise TokenStoreError(
                f"Failed to read tokens from {self._token_file}"
            ) from exc

    def save(self, token: Token) -> None:
        merged = self.fetch().merged_with(token)
        try:
            self._token_file.parent.mkdir(parents=True, exist_ok=True)
            self._token_file.write_text(json.dumps(merged.to_dict(), indent=2))
        except OSError as exc:
            raise TokenStoreError(
                f"Failed to write tokens to {self._token_file}"
            ) from exc
        logger.info("Tokens saved to %s", self._token_file)
