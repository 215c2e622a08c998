"""Tests for canonical encoding, HMAC signing and the timestamp window."""
import hashlib
import hmac
import itertools

from scalus_auth.signature import (
    SignatureContext,
    encoded_params_for_signature,
    hmac_sign,
    is_expired,
    provided_signature,
    signature_context,
    verify_signature,
)

SECRET = "53cr3tz"
NOW = 1_700_000_000


def _signed(params: dict, secret: str = SECRET, field: str = "hmac") -> dict:
    signed = dict(params)
    signed[field] = hmac_sign(encoded_params_for_signature(signed), secret)
    return signed


def _base_params() -> dict:
    return {
        "organization": "snowdevil.scalus.com",
        "code": "abc123",
        "timestamp": str(NOW),
        "state": "s" * 16,
    }


# --- canonical encoding ---


def test_encoding_sorts_by_name_and_joins_with_ampersand():
    assert encoded_params_for_signature({"b": "2", "a": "1", "c": "3"}) == "a=1&b=2&c=3"


def test_encoding_independent_of_order():
    items = list(_base_params().items())
    results = {encoded_params_for_signature(dict(p)) for p in itertools.permutations(items)}
    assert len(results) == 1


def test_encoding_excludes_both_signature_fields():
    encoded = encoded_params_for_signature({"code": "x", "hmac": "h", "signature": "s"})
    assert encoded == "code=x"


def test_encoding_escapes_only_ampersand_percent_and_space_in_values():
    params = {"next": "/products?page=2&q=red%20shirt"}
    assert encoded_params_for_signature(params) == "next=/products?page=2%26q=red%2520shirt"


def test_encoding_space_is_percent20_not_plus():
    assert encoded_params_for_signature({"q": "red shirt"}) == "q=red%20shirt"


def test_encoding_escapes_equals_in_keys():
    assert encoded_params_for_signature({"a=b": "c=d"}) == "a%3Db=c=d"


def test_encoding_matches_provider_canonical_string():
    code = "deadbeef"
    state = "f00d"
    params = {
        "organization": "snowdevil.scalus.com",
        "code": code,
        "timestamp": str(NOW),
        "next": "/products?page=2&q=red%20shirt",
        "state": state,
    }
    expected = (
        f"code={code}&next=/products?page=2%26q=red%2520shirt"
        f"&organization=snowdevil.scalus.com&state={state}&timestamp={NOW}"
    )
    assert encoded_params_for_signature(params) == expected


# --- signing ---


def test_hmac_sign_is_lowercase_hex_sha256():
    digest = hmac_sign("a=1", SECRET)
    assert digest == hmac.new(SECRET.encode(), b"a=1", hashlib.sha256).hexdigest()
    assert digest == digest.lower()
    assert len(digest) == 64


def test_signature_context_none_without_signature():
    assert signature_context(_base_params(), SECRET) is None


def test_signature_context_computes_expected_independently():
    params = _signed(_base_params())
    params["hmac"] = "0" * 64
    context = signature_context(params, SECRET)
    assert isinstance(context, SignatureContext)
    assert context.provided_signature == "0" * 64
    assert context.expected_signature == hmac_sign(context.canonical_string, SECRET)
    assert context.matches() is False


def test_provided_signature_prefers_hmac_over_legacy():
    assert provided_signature({"hmac": "new", "signature": "old"}) == "new"
    assert provided_signature({"signature": "old"}) == "old"
    assert provided_signature({}) is None


# --- verification ---


def test_verify_round_trip():
    assert verify_signature(_signed(_base_params()), SECRET, max_age=300, now=NOW) is True


def test_verify_legacy_signature_field():
    params = _signed(_base_params(), field="signature")
    assert "hmac" not in params
    assert verify_signature(params, SECRET, max_age=300, now=NOW) is True


def test_verify_with_both_fields_uses_hmac():
    params = _signed(_base_params())
    params["signature"] = "ignored"
    assert verify_signature(params, SECRET, max_age=300, now=NOW) is True


def test_verify_detects_tampering_of_any_value():
    signed = _signed(_base_params())
    for key in _base_params():
        if key == "timestamp":
            continue
        tampered = dict(signed)
        tampered[key] = tampered[key] + "x"
        assert verify_signature(tampered, SECRET, max_age=300, now=NOW) is False, key


def test_verify_detects_added_parameter():
    signed = _signed(_base_params())
    signed["unsigned"] = "value"
    assert verify_signature(signed, SECRET, max_age=300, now=NOW) is False


def test_verify_wrong_secret():
    params = _signed(_base_params(), secret="wrong_secret")
    assert verify_signature(params, SECRET, max_age=300, now=NOW) is False


def test_verify_missing_signature():
    assert verify_signature(_base_params(), SECRET, max_age=300, now=NOW) is False


def test_verify_empty_signature():
    params = _base_params()
    params["hmac"] = ""
    assert verify_signature(params, SECRET, max_age=300, now=NOW) is False


def test_verify_expired_timestamp_even_if_signed():
    params = _base_params()
    params["timestamp"] = str(NOW - 301)
    assert verify_signature(_signed(params), SECRET, max_age=300, now=NOW) is False


def test_verify_missing_timestamp_even_if_signed():
    params = _base_params()
    del params["timestamp"]
    assert verify_signature(_signed(params), SECRET, max_age=300, now=NOW) is False


# --- timestamp guard ---


def test_expiry_boundary():
    assert is_expired(str(NOW - 300), NOW, 300) is False
    assert is_expired(str(NOW - 301), NOW, 300) is True


def test_expiry_accepts_int_timestamp():
    assert is_expired(NOW, NOW, 300) is False


def test_expiry_malformed_or_absent():
    assert is_expired(None, NOW, 300) is True
    assert is_expired("", NOW, 300) is True
    assert is_expired("12abc", NOW, 300) is True
    assert is_expired(" 1700000000", NOW, 300) is True
    assert is_expired("-5", NOW, 300) is True


def test_expiry_oversized_or_newline_timestamp():
    assert is_expired("9" * 5000, NOW, 300) is True
    assert is_expired("1" * 13, NOW, 300) is True
    assert is_expired(f"{NOW}\n", NOW, 300) is True
    assert is_expired("١٧٠٠٠٠٠٠٠٠", NOW, 300) is True


def test_verify_oversized_timestamp_returns_false():
    params = _base_params()
    params["timestamp"] = "9" * 5000
    assert verify_signature(_signed(params), SECRET, max_age=300, now=NOW) is False
