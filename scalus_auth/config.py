"""
Strategy configuration. Defaults match the provider's standard setup;
credentials come from the host at registration or from SCALUS_* env vars.
"""
import os
import re
import secrets
from dataclasses import dataclass

from scalus_auth.errors import ConfigurationError

DEFAULT_PROVIDER_NAME = "scalus"

# Scope requested when the host does not pass one
DEFAULT_SCOPE = "read_products"

# Tenant sites live under this domain (may carry a port for dev installs, e.g. scalus.dev:3000)
DEFAULT_DOMAIN_SUFFIX = "scalus.com"

DEFAULT_CALLBACK_PATH = f"/auth/{DEFAULT_PROVIDER_NAME}/callback"
DEFAULT_AUTHORIZE_PATH = "/admin/oauth/authorize"
DEFAULT_TOKEN_PATH = "/admin/oauth/access_token"

# Signed callbacks older than this (seconds) are rejected as replays
CODE_EXPIRES_AFTER = 300

# Session cookie signing key for the demo host app. Generated per process if unset.
SESSION_SECRET = os.environ.get("SCALUS_SESSION_SECRET", "").strip() or secrets.token_hex(32)

_DOMAIN_SUFFIX_RE = re.compile(r"[a-z0-9-]+(\.[a-z0-9-]+)+(:\d{1,5})?", re.IGNORECASE)


@dataclass(frozen=True)
class StrategyConfig:
    """Immutable provider registration. Validated once on construction."""

    client_id: str
    client_secret: str
    scope: str = DEFAULT_SCOPE
    callback_path: str = DEFAULT_CALLBACK_PATH
    domain_suffix: str = DEFAULT_DOMAIN_SUFFIX
    code_expires_after: int = CODE_EXPIRES_AFTER
    provider_name: str = DEFAULT_PROVIDER_NAME
    authorize_path: str = DEFAULT_AUTHORIZE_PATH
    token_path: str = DEFAULT_TOKEN_PATH

    def __post_init__(self) -> None:
        if not self.client_id:
            raise ConfigurationError("client_id is required")
        if not self.client_secret:
            raise ConfigurationError("client_secret is required")
        if not _DOMAIN_SUFFIX_RE.fullmatch(self.domain_suffix or ""):
            raise ConfigurationError(f"domain_suffix must be a bare domain, got {self.domain_suffix!r}")
        if isinstance(self.code_expires_after, bool) or not isinstance(self.code_expires_after, int):
            raise ConfigurationError("code_expires_after must be an integer number of seconds")
        if self.code_expires_after <= 0:
            raise ConfigurationError("code_expires_after must be positive")
        for name in ("callback_path", "authorize_path", "token_path"):
            value = getattr(self, name)
            if not value or not value.startswith("/"):
                raise ConfigurationError(f"{name} must be an absolute path, got {value!r}")
        if not re.fullmatch(r"[a-z0-9_-]+", self.provider_name or ""):
            raise ConfigurationError(f"provider_name must be a simple slug, got {self.provider_name!r}")

    @classmethod
    def from_env(cls) -> "StrategyConfig":
        """Build from SCALUS_* environment variables; read at call time so tests can override."""
        expires = os.environ.get("SCALUS_CODE_EXPIRES_AFTER", str(CODE_EXPIRES_AFTER))
        try:
            code_expires_after = int(expires)
        except ValueError:
            raise ConfigurationError(f"SCALUS_CODE_EXPIRES_AFTER must be an integer, got {expires!r}")
        return cls(
            client_id=os.environ.get("SCALUS_CLIENT_ID", ""),
            client_secret=os.environ.get("SCALUS_CLIENT_SECRET", ""),
            scope=os.environ.get("SCALUS_SCOPE", DEFAULT_SCOPE),
            callback_path=os.environ.get("SCALUS_CALLBACK_PATH", DEFAULT_CALLBACK_PATH),
            domain_suffix=os.environ.get("SCALUS_DOMAIN", DEFAULT_DOMAIN_SUFFIX),
            code_expires_after=code_expires_after,
        )
