import pytest

from app.security import hashing


def _configure_secret(monkeypatch, secret: str = "a" * 32):
    monkeypatch.setattr("app.security.hashing.settings.HASHING_SECRET", secret, raising=False)


def _reference_fold(value: str) -> str:
    h = 0
    for char in value:
        h = (h << 5) - h + ord(char)
        h = (h + 2**31) % 2**32 - 2**31
    return format(abs(h), "x")


@pytest.mark.parametrize(
    "address, expected",
    [
        ("a", "61"),
        ("ab", "c21"),
        ("192.168.1.1", "355f915"),
        ("203.0.113.7", "52fbe0a5"),
        ("8.8.8.8", "1bf937ea"),
        ("unknown", "10fa53b6"),
    ],
)
def test_hash_ip_known_values(address, expected):
    assert hashing.hash_ip(address) == expected


def test_hash_ip_is_deterministic():
    assert hashing.hash_ip("198.51.100.23") == hashing.hash_ip("198.51.100.23")


def test_hash_ip_matches_signed_fold_for_long_inputs():
    address = "2001:0db8:85a3:0000:0000:8a2e:0370:7334"
    assert hashing.hash_ip(address) == _reference_fold(address)


def test_hash_ip_folds_code_points():
    # U+1F600 is one code point but two UTF-16 code units (0xD83D 0xDE00)
    assert hashing.hash_ip("a\U0001F600") == "201bf"
    assert hashing.hash_ip("a\U0001F600") != "1c7984"


def test_hash_ip_empty_string():
    assert hashing.hash_ip("") == "0"


def test_hash_ip_is_lowercase_hex():
    token = hashing.hash_ip("10.0.0.1")
    assert token == token.lower()
    int(token, 16)


def test_hash_viewer_ip_missing_address_hashes_unknown(monkeypatch):
    monkeypatch.setattr("app.security.hashing.settings.IP_HASH_MODE", "fold")
    assert hashing.hash_viewer_ip(None) == hashing.hash_ip("unknown")
    assert hashing.hash_viewer_ip("") == hashing.hash_ip("unknown")


def test_hash_viewer_ip_hmac_mode(monkeypatch):
    _configure_secret(monkeypatch)
    monkeypatch.setattr("app.security.hashing.settings.IP_HASH_MODE", "hmac")

    token = hashing.hash_viewer_ip("203.0.113.7")

    assert token == hashing.hash_ip_keyed("203.0.113.7")
    assert len(token) == 64
    assert token != hashing.hash_ip("203.0.113.7")


def test_compute_hmac_is_deterministic(monkeypatch):
    _configure_secret(monkeypatch)
    first = hashing.compute_hmac("value", namespace="test")
    second = hashing.compute_hmac("value", namespace="test")
    assert first == second


def test_namespaces_change_output(monkeypatch):
    _configure_secret(monkeypatch)
    assert hashing.compute_hmac("abc", namespace="one") != hashing.compute_hmac(
        "abc", namespace="two"
    )


def test_missing_secret_raises(monkeypatch):
    monkeypatch.setattr("app.security.hashing.settings.HASHING_SECRET", "", raising=False)
    with pytest.raises(hashing.HashingError):
        hashing.compute_hmac("value", namespace="test")


def test_too_short_secret_raises(monkeypatch):
    monkeypatch.setattr("app.security.hashing.settings.HASHING_SECRET", "short", raising=False)
    with pytest.raises(hashing.HashingError):
        hashing.compute_hmac("value", namespace="test")
