"""Exception hierarchy for the Next Engine client.

Transport and JSON decoding failures are raised by ``requests`` unchanged;
everything defined here is either reported by the provider or by a token
store.
"""

from __future__ import annotations


class NextEngineError(Exception):
    """Base exception for all errors raised by this package."""


class ConfigurationError(NextEngineError):
    """A required setting is missing or invalid."""


class TokenStoreError(NextEngineError):
    """Reading or writing the persisted token failed."""


class APIError(NextEngineError):
    """The API answered with a result other than ``success``.

    Attributes:
        code: Provider error code (e.g. ``002004`` for an expired token)
        message: Human readable message from the envelope
        result: Raw ``result`` field (``error`` or ``redirect``)
    """

    def __init__(self, code: str, message: str, result: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.result = result

    def __repr__(self) -> str:
        return (
            f"APIError(code={self.code!r}, message={self.message!r}, "
            f"result={self.result!r})"
        )
