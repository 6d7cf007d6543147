"""Referrer URL helpers shared by analytics and notifications."""

from urllib.parse import urlparse


def referrer_hostname(referrer: str | None) -> str | None:
    """
    Extract the hostname from a referrer URL.

    Returns None when the referrer is absent or is not an absolute URL with
    a host, e.g. "https://bandsintown.com/x" -> "bandsintown.com".
    """
    if not referrer or not referrer.strip():
        return None

    try:
        parsed = urlparse(referrer.strip())
        hostname = parsed.hostname
    except ValueError:
        return None

    if not parsed.scheme or not hostname:
        return None
    return hostname
