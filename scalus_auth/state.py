"""
CSRF state for the authorize/callback round trip. The token lives in the host's session
between the two requests; this module only reads and writes one key.
"""
import logging
import secrets
from collections.abc import MutableMapping

logger = logging.getLogger(__name__)

SESSION_STATE_KEY = "scalus_auth.state"


def generate_state() -> str:
    """Opaque per-login nonce; returned to us unchanged in the callback."""
    return secrets.token_hex(32)


def store_state(session: MutableMapping) -> str:
    state = generate_state()
    session[SESSION_STATE_KEY] = state
    return state


def check_state(params_state: str | None, session: MutableMapping) -> bool:
    """
    Compare the callback's state with the session value. The session value is consumed
    either way, so a state token can only be used once.
    """
    expected = session.pop(SESSION_STATE_KEY, None)
    if not expected or not params_state:
        logger.warning("CSRF state missing (param present=%s, session present=%s)", bool(params_state), bool(expected))
        return False
    if params_state != expected:
        logger.warning("CSRF state mismatch")
        return False
    return True
