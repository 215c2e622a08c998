"""
Pytest configuration for scalus_auth. Credentials are set before any app import so
scalus_auth.main can build its module-level app.
"""
import os
import time

import pytest

os.environ["SCALUS_CLIENT_ID"] = "123"
os.environ["SCALUS_CLIENT_SECRET"] = "53cr3tz"
os.environ["SCALUS_SESSION_SECRET"] = "test-session-secret"
for var in ("SCALUS_SCOPE", "SCALUS_CALLBACK_PATH", "SCALUS_DOMAIN", "SCALUS_CODE_EXPIRES_AFTER"):
    os.environ.pop(var, None)

from scalus_auth.signature import encoded_params_for_signature, hmac_sign  # noqa: E402

SECRET = "53cr3tz"


@pytest.fixture
def sign():
    """Return a helper that adds timestamp (if missing) and hmac, like the provider does."""

    def _sign(params: dict, secret: str = SECRET) -> dict:
        signed = {k: str(v) for k, v in params.items()}
        signed.setdefault("timestamp", str(int(time.time())))
        signed["hmac"] = hmac_sign(encoded_params_for_signature(signed), secret)
        return signed

    return _sign
