"""Helpers that derive stable identities from request data."""

import hashlib
from typing import Mapping


def hash_email(email: str) -> str:
    """
    Hash an email address for storage.

    The address is trimmed and lowercased first, so differently-cased copies
    of the same address map to the same identity.

    Args:
        email: Raw email address.

    Returns:
        str: Hex SHA-256 digest.
    """
    return hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()


def get_client_ip(headers: Mapping[str, str]) -> str:
    """
    Resolve the client address used as the rate-limit identity.

    Takes the first entry of `X-Forwarded-For`, then `X-Real-IP`, and falls
    back to "unknown".
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return "unknown"
