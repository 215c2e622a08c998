"""
Minimal OAuth2 authorization-code client used by the strategy: builds the provider
authorize URL and exchanges the code at the provider token endpoint over httpx.
No retries; failures are raised to the caller.
"""
import logging
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlencode

import httpx

from scalus_auth.errors import TokenExchangeError

logger = logging.getLogger(__name__)

TOKEN_REQUEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class AccessToken:
    token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    params: dict = field(default_factory=dict)


class OAuth2Client:
    def __init__(self, client_id: str, client_secret: str, *, timeout: float = TOKEN_REQUEST_TIMEOUT) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.site: str | None = None
        self.authorize_path = "/oauth/authorize"
        self.token_path = "/oauth/token"

    def configure(
        self,
        site: str,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_path: str | None = None,
        authorize_path: str | None = None,
    ) -> "OAuth2Client":
        """Point the client at a (validated) provider site."""
        self.site = site.rstrip("/")
        if client_id is not None:
            self.client_id = client_id
        if client_secret is not None:
            self.client_secret = client_secret
        if token_path is not None:
            self.token_path = token_path
        if authorize_path is not None:
            self.authorize_path = authorize_path
        return self

    def _url(self, path: str) -> str:
        if not self.site:
            raise RuntimeError("OAuth2Client.configure() must be called with a site first")
        return f"{self.site}{path}"

    def build_authorize_url(self, redirect_uri: str, scope: str, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "scope": scope,
            "state": state,
        }
        return f"{self._url(self.authorize_path)}?{urlencode(params)}"

    def exchange_code(self, code: str, redirect_uri: str | None = None) -> AccessToken:
        """
        POST the authorization code to the token endpoint (credentials in the form body).
        Raises TokenExchangeError on a non-200 or token-less response; httpx errors propagate.
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        if redirect_uri:
            data["redirect_uri"] = redirect_uri
        r = httpx.post(
            self._url(self.token_path),
            data=data,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        body = _parse_token_body(r)
        if r.status_code != 200:
            detail = body.get("error_description") or body.get("error") or "Token exchange failed"
            raise TokenExchangeError(r.status_code, str(detail))
        access_token = body.get("access_token")
        if not access_token:
            raise TokenExchangeError(r.status_code, "Response did not include an access_token")
        logger.info("Token exchange succeeded at %s", self.site)
        return AccessToken(
            token=str(access_token),
            refresh_token=body.get("refresh_token"),
            expires_in=_int_or_none(body.get("expires_in")),
            params={k: v for k, v in body.items() if k not in ("access_token", "refresh_token")},
        )


def _int_or_none(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_token_body(r) -> dict:
    """Token endpoints answer in JSON; fall back to form encoding."""
    content_type = r.headers.get("content-type", "")
    try:
        if content_type.startswith("application/json"):
            data = r.json()
            return data if isinstance(data, dict) else {}
        return dict(parse_qsl(r.text or ""))
    except ValueError:
        return {}
