"""
Failure reasons reported to the host and the few exceptions the strategy raises.
Expected validation failures are result values, not exceptions.
"""

INVALID_SITE = "invalid_site"
INVALID_SIGNATURE = "invalid_signature"
CSRF_DETECTED = "csrf_detected"
OAUTH2_ERROR = "oauth2_error"
TIMEOUT = "timeout"


class ConfigurationError(ValueError):
    """Strategy configuration is malformed; raised at registration time only."""


class TokenExchangeError(Exception):
    """Provider token endpoint rejected the code or returned an unusable response."""

    def __init__(self, status_code: int | None, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Token exchange failed (HTTP {status_code}): {detail}")
