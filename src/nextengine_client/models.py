"""Value types shared by the client and the token stores."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

AUTH_HOST = "https://base.next-engine.org"
API_HOST = "https://api.next-engine.org"

SUCCESS = "success"
ERROR = "error"
REDIRECT = "redirect"


@dataclass
class Token:
    """Access/refresh token pair with the end dates issued by Next Engine.

    Values are kept as the provider sends them. An empty string means
    "unknown" and never replaces a stored value on merge.
    """

    access_token: str = ""
    refresh_token: str = ""
    access_token_end_date: str = ""
    refresh_token_end_date: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Token":
        if not data:
            return cls()
        values = {}
        for item in fields(cls):
            value = data.get(item.name)
            values[item.name] = "" if value is None else str(value)
        return cls(**values)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @property
    def has_token_pair(self) -> bool:
        return bool(self.access_token and self.refresh_token)

    def merged_with(self, update: "Token") -> "Token":
        """Return a copy where every non-empty field of ``update`` wins."""

        values = {}
        for item in fields(self):
            incoming = getattr(update, item.name)
            values[item.name] = incoming if incoming else getattr(self, item.name)
        return Token(**values)


@dataclass
class APIResponse:
    """Decoded JSON envelope returned by every API endpoint."""

    code: str = ""
    message: str = ""
    result: str = ""
    token: Token = field(default_factory=Token)
    count: str = ""
    data: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "APIResponse":
        data = payload.get("data") or []
        return cls(
            code=_as_text(payload.get("code")),
            message=_as_text(payload.get("message")),
            result=_as_text(payload.get("result")),
            token=Token.from_dict(payload),
            count=_as_text(payload.get("count")),
            data=list(data) if isinstance(data, list) else [data],
            raw=payload,
        )

    @property
    def is_success(self) -> bool:
        return self.result == SUCCESS


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)
