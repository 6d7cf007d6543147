"""
Viewer address pseudonymization.

Raw client IPs are never stored. The default transform is a lossy 32-bit
fold that is stable across deployments and good enough for approximate
unique-visitor counts; it is NOT a cryptographic hash. Deployments that
need stronger guarantees can switch IP_HASH_MODE to "hmac", which uses a
namespaced HMAC-SHA256 keyed by HASHING_SECRET.
"""

from __future__ import annotations

import hashlib
import hmac

from app.config import settings

SECRET_MIN_LENGTH = 16  # catch obvious misconfiguration
UNKNOWN_ADDRESS = "unknown"

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000

__all__ = [
    "HashingError",
    "UNKNOWN_ADDRESS",
    "compute_hmac",
    "hash_ip",
    "hash_ip_keyed",
    "hash_viewer_ip",
]


class HashingError(RuntimeError):
    """Raised when hashing prerequisites are not satisfied."""


def hash_ip(address: str) -> str:
    """
    Fold an address into an unsigned hex token.

    Rolling ``h = h * 31 + ord(char)`` over the Unicode code points, wrapped
    to a signed 32-bit integer after every step; the absolute value is
    rendered in lowercase hex. Distinct inputs may collide.

    The fold is defined over code points, not UTF-16 code units, so input
    outside the Basic Multilingual Plane hashes differently from a
    ``charCodeAt`` based fold. IP address text is ASCII and unaffected.
    """
    value = 0
    for char in address:
        value = (value * 31 + ord(char)) & _INT32_MASK
    if value & _INT32_SIGN:
        value -= _INT32_MASK + 1
    return format(abs(value), "x")


def _secret_bytes() -> bytes:
    secret = getattr(settings, "HASHING_SECRET", None)
    if not secret:
        raise HashingError("HASHING_SECRET is not configured")
    if len(secret) < SECRET_MIN_LENGTH:
        raise HashingError("HASHING_SECRET is too short; please rotate it")
    return secret.encode("utf-8")


def compute_hmac(value: str, *, namespace: str) -> str:
    """
    Compute a namespaced hex HMAC-SHA256 digest.

    Args:
        value: Raw string value to hash.
        namespace: Logical namespace/salt to avoid cross-field collisions.
    """
    scoped = f"{namespace}:{value or ''}"
    digest = hmac.new(_secret_bytes(), scoped.encode("utf-8"), hashlib.sha256)
    return digest.hexdigest()


def hash_ip_keyed(address: str) -> str:
    """Keyed alternative to hash_ip."""
    return compute_hmac(address.strip().lower(), namespace="viewer_ip")


def hash_viewer_ip(address: str | None) -> str:
    """Hash a viewer address with the configured mode; absent addresses hash as 'unknown'."""
    raw = address or UNKNOWN_ADDRESS
    if settings.IP_HASH_MODE == "hmac":
        return hash_ip_keyed(raw)
    return hash_ip(raw)
