"""
Two-phase Scalus login.

Request phase: validate the organization, point the OAuth2 client at its site, store a fresh
CSRF state in the session and hand back the provider authorize URL (no network call).

Callback phase: CSRF state -> timestamp + HMAC -> organization site -> code exchange.
Every rejection is returned as an AuthFailure with a reason code; rendering is the host's job.
"""
import logging
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import asdict, dataclass, field
from typing import Any

import httpx

from scalus_auth.config import StrategyConfig
from scalus_auth.errors import CSRF_DETECTED, INVALID_SIGNATURE, INVALID_SITE, OAUTH2_ERROR, TIMEOUT, TokenExchangeError
from scalus_auth.oauth_client import OAuth2Client
from scalus_auth.signature import verify_signature
from scalus_auth.site import authorize_site, normalize_site, organization_from_site
from scalus_auth.state import check_state, store_state

logger = logging.getLogger(__name__)

SetupHook = Callable[[Mapping[str, str]], str | None]


@dataclass(frozen=True)
class Credentials:
    token: str
    # Provider access tokens do not expire
    expires: bool = False
    refresh_token: str | None = None


@dataclass(frozen=True)
class AuthResult:
    provider: str
    uid: str
    credentials: Credentials
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AuthorizeRedirect:
    url: str
    status_code: int = 302


@dataclass(frozen=True)
class AuthFailure:
    reason: str
    error: Exception | None = None


class ScalusStrategy:
    """
    Stateless across requests: each phase builds its own OAuth2 client and only touches
    the session passed in.
    """

    def __init__(
        self,
        config: StrategyConfig,
        *,
        setup: SetupHook | None = None,
        client_factory: Callable[[StrategyConfig], OAuth2Client] | None = None,
    ) -> None:
        self.config = config
        self.setup = setup
        self._client_factory = client_factory or (lambda c: OAuth2Client(c.client_id, c.client_secret))

    @property
    def name(self) -> str:
        return self.config.provider_name

    def callback_url(self, full_host: str) -> str:
        return f"{full_host.rstrip('/')}{self.config.callback_path}"

    def resolve_site(self, params: Mapping[str, str]) -> str | None:
        """Site from the setup hook if it sets one, else from the organization parameter."""
        if self.setup is not None:
            override = self.setup(params)
            if override:
                return normalize_site(override, self.config.domain_suffix)
        return authorize_site(params.get("organization"), self.config.domain_suffix)

    def _client_for(self, site: str) -> OAuth2Client:
        client = self._client_factory(self.config)
        return client.configure(
            site,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            token_path=self.config.token_path,
            authorize_path=self.config.authorize_path,
        )

    def _fail(self, reason: str, error: Exception | None = None) -> AuthFailure:
        logger.warning("%s authentication failure: %s", self.name, reason)
        return AuthFailure(reason=reason, error=error)

    def request_phase(
        self,
        params: Mapping[str, str],
        session: MutableMapping,
        full_host: str,
    ) -> AuthorizeRedirect | AuthFailure:
        site = self.resolve_site(params)
        if site is None:
            return self._fail(INVALID_SITE)
        client = self._client_for(site)
        state = store_state(session)
        url = client.build_authorize_url(
            redirect_uri=self.callback_url(full_host),
            scope=self.config.scope,
            state=state,
        )
        logger.info("%s authorize redirect to %s", self.name, site)
        return AuthorizeRedirect(url=url)

    def callback_phase(
        self,
        params: Mapping[str, str],
        session: MutableMapping,
        full_host: str | None = None,
    ) -> AuthResult | AuthFailure:
        """
        params must come from the query string only; the provider never signs the body.
        """
        if not check_state(params.get("state"), session):
            return self._fail(CSRF_DETECTED)
        if not verify_signature(params, self.config.client_secret, max_age=self.config.code_expires_after):
            return self._fail(INVALID_SIGNATURE)
        site = self.resolve_site(params)
        if site is None:
            return self._fail(INVALID_SITE)

        client = self._client_for(site)
        redirect_uri = self.callback_url(full_host) if full_host else None
        try:
            access_token = client.exchange_code(params.get("code", ""), redirect_uri=redirect_uri)
        except httpx.TimeoutException as e:
            return self._fail(TIMEOUT, e)
        except (TokenExchangeError, httpx.HTTPError) as e:
            return self._fail(OAUTH2_ERROR, e)

        uid = organization_from_site(site)
        logger.info("%s login succeeded for %s", self.name, uid)
        return AuthResult(
            provider=self.name,
            uid=uid,
            credentials=Credentials(token=access_token.token, refresh_token=access_token.refresh_token),
            extra=dict(access_token.params),
        )
