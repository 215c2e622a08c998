"""
HMAC-SHA256 signing of callback parameters.
The provider signs every query parameter except the signature itself; we rebuild the same
canonical string, reject stale timestamps, and compare digests in constant time.
"""
import hashlib
import hmac
import logging
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import quote

logger = logging.getLogger(__name__)

SIGNATURE_FIELD = "hmac"
LEGACY_SIGNATURE_FIELD = "signature"
SIGNATURE_FIELDS = (SIGNATURE_FIELD, LEGACY_SIGNATURE_FIELD)

# Only these characters are percent-encoded; everything else stays literal (provider canonicalization)
_KEY_UNSAFE = "&=% "
_VALUE_UNSAFE = "&% "

# Unix seconds; the length cap keeps int() away from huge attacker-supplied strings
_TIMESTAMP_RE = re.compile(r"[0-9]{1,12}")


@dataclass(frozen=True)
class SignatureContext:
    canonical_string: str
    provided_signature: str
    expected_signature: str

    def matches(self) -> bool:
        return hmac.compare_digest(
            self.expected_signature.encode("utf-8"),
            self.provided_signature.encode("utf-8"),
        )


def _escape(value: str, unsafe: str) -> str:
    return "".join(quote(ch, safe="") if ch in unsafe else ch for ch in value)


def encoded_params_for_signature(params: Mapping[str, object]) -> str:
    """
    Canonical string for signing: drop hmac/signature, escape, sort by name, join with '&'.
    Independent of the mapping's iteration order.
    """
    pairs = [
        (_escape(str(key), _KEY_UNSAFE), _escape(str(value), _VALUE_UNSAFE))
        for key, value in params.items()
        if str(key) not in SIGNATURE_FIELDS
    ]
    pairs.sort()
    return "&".join(f"{key}={value}" for key, value in pairs)


def hmac_sign(encoded_params: str, secret: str) -> str:
    """Lowercase hex HMAC-SHA256 of the canonical string."""
    return hmac.new(secret.encode("utf-8"), encoded_params.encode("utf-8"), hashlib.sha256).hexdigest()


def provided_signature(params: Mapping[str, object]) -> str | None:
    """Signature sent by the provider; 'hmac' wins over the legacy 'signature' field."""
    for field in SIGNATURE_FIELDS:
        value = params.get(field)
        if value:
            return str(value)
    return None


def signature_context(params: Mapping[str, object], secret: str) -> SignatureContext | None:
    provided = provided_signature(params)
    if provided is None:
        return None
    canonical = encoded_params_for_signature(params)
    return SignatureContext(
        canonical_string=canonical,
        provided_signature=provided,
        expected_signature=hmac_sign(canonical, secret),
    )


def is_expired(timestamp: object, now: int, max_age: int) -> bool:
    """
    True when the timestamp is missing, not a plain integer, or older than max_age seconds.
    A timestamp exactly max_age seconds old is still valid.
    """
    if timestamp is None:
        return True
    text = str(timestamp)
    if not _TIMESTAMP_RE.fullmatch(text):
        return True
    return now - int(text) > max_age


def verify_signature(
    params: Mapping[str, object],
    secret: str,
    *,
    max_age: int,
    now: int | None = None,
) -> bool:
    """
    Check timestamp freshness and the HMAC. Never raises; callers cannot tell
    an expired request from a forged or unsigned one.
    """
    if now is None:
        now = int(time.time())
    if is_expired(params.get("timestamp"), now, max_age):
        logger.debug("callback timestamp missing or outside %ss window", max_age)
        return False
    context = signature_context(params, secret)
    if context is None:
        logger.debug("callback carries no signature field")
        return False
    return context.matches()
