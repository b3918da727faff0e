"""Next Engine API client: sign-in URL, token exchange and API execution."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

import requests

from .exceptions import APIError
from .models import API_HOST, AUTH_HOST, APIResponse, Token
from .token_store import DefaultTokenStore, TokenStore

logger = logging.getLogger("nextengine-client")

DEFAULT_TIMEOUT = 30
SIGN_IN_PATH = "/users/sign_in/"
AUTHORIZE_ENDPOINT = "/api_neauth"

ParamPairs = List[Tuple[str, str]]
ExtraParams = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


class NextEngineClient:
    """Calls the Next Engine API and keeps the token store up to date.

    Every API response may carry a rotated token pair; it is saved to the
    store before the response is inspected, so the next call always uses the
    latest token. Nothing is retried: transport errors from ``requests``
    reach the caller unchanged.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        token_store: TokenStore,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        auth_host: str = AUTH_HOST,
        api_host: str = API_HOST,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._token_store = token_store
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout
        self._auth_host = auth_host.rstrip("/")
        self._api_host = api_host.rstrip("/")

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def redirect_uri(self) -> str:
        return self._redirect_uri

    @property
    def token_store(self) -> TokenStore:
        return self._token_store

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "NextEngineClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def sign_in_uri(self, extra_params: Optional[ExtraParams] = None) -> str:
        """Return the URL of the Next Engine sign-in screen."""

        pairs: ParamPairs = [
            ("client_id", self._client_id),
            ("redirect_uri", self._redirect_uri),
        ]
        pairs.extend(_to_pairs(extra_params))
        return f"{self._auth_host}{SIGN_IN_PATH}?{urlencode(pairs)}"

    def authorize(
        self, uid: str, state: str, *, timeout: Optional[float] = None
    ) -> APIResponse:
        """Exchange the ``uid``/``state`` pair from the sign-in redirect for tokens."""

        credentials = [
            ("client_id", self._client_id),
            ("client_secret", self._client_secret),
            ("uid", uid),
            ("state", state),
        ]
        return self._request(AUTHORIZE_ENDPOINT, None, credentials, timeout)

    def api_execute(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> APIResponse:
        """Call an endpoint that requires login. ``endpoint`` starts with ``/``."""

        _check_endpoint(endpoint)
        token = self._token_store.fetch()
        credentials = [
            ("access_token", token.access_token),
            ("refresh_token", token.refresh_token),
        ]
        return self._request(endpoint, params, credentials, timeout)

    def api_execute_no_required_login(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> APIResponse:
        """Call an endpoint that only needs the app credentials."""

        credentials = [
            ("client_id", self._client_id),
            ("client_secret", self._client_secret),
        ]
        return self._request(endpoint, params, credentials, timeout)

    def _request(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]],
        credentials: ParamPairs,
        timeout: Optional[float],
    ) -> APIResponse:
        _check_endpoint(endpoint)
        # Caller params first; repeated keys are all sent.
        body: ParamPairs = [(key, str(value)) for key, value in (params or {}).items()]
        body.extend(credentials)

        logger.debug("POST %s", endpoint)
        response = self._session.post(
            f"{self._api_host}{endpoint}",
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=timeout if timeout is not None else self._timeout,
        )
        return self._handle_response(response)

    def _handle_response(self, response: requests.Response) -> APIResponse:
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(
                f"Unexpected response body from Next Engine: {type(payload).__name__}"
            )

        api_response = APIResponse.from_payload(payload)
        if api_response.token.has_token_pair:
            self._token_store.save(api_response.token)
            logger.info(
                "Stored rotated token (access token valid until %s)",
                api_response.token.access_token_end_date or "unknown",
            )

        if not api_response.is_success:
            raise APIError(
                code=api_response.code,
                message=api_response.message,
                result=api_response.result,
            )
        return api_response


def new_default_client(
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    access_token: str = "",
    refresh_token: str = "",
    **kwargs: Any,
) -> NextEngineClient:
    """Build a client holding its token in memory, seeded with the given pair."""

    store = DefaultTokenStore(
        Token(access_token=access_token, refresh_token=refresh_token)
    )
    return NextEngineClient(
        client_id, client_secret, redirect_uri, token_store=store, **kwargs
    )


def _check_endpoint(endpoint: str) -> None:
    if not endpoint.startswith("/"):
        raise ValueError(f"endpoint must start with '/': {endpoint!r}")


def _to_pairs(extra_params: Optional[ExtraParams]) -> ParamPairs:
    if not extra_params:
        return []
    if not isinstance(extra_params, Mapping):
        return [(str(key), str(value)) for key, value in extra_params]

    pairs: ParamPairs = []
    for key, values in extra_params.items():
        if not isinstance(values, (list, tuple)):
            values = [values]
        pairs.extend((key, str(value)) for value in values)
    return pairs
