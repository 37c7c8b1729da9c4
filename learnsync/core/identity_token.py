"""
Route token codec and display helpers for learner identities.

The IDE links to a session as /courses/{courseId}/learn/user/{token}; the
token is the learner's email, salted, reversed and base64url-encoded.
"""

from __future__ import annotations

import base64
import binascii

from loguru import logger

from .models import GUEST_ID

DEFAULT_SALT = "beblocky_2024"


def encode_email(email: str, salt: str = DEFAULT_SALT) -> str:
    """Encode an email into a URL-safe route token."""
    if not email:
        return GUEST_ID

    reversed_text = (email + salt)[::-1]
    encoded = base64.b64encode(reversed_text.encode("utf-8")).decode("ascii")
    return encoded.replace("+", "-").replace("/", "_").replace("=", "")


def decode_token(token: str, salt: str = DEFAULT_SALT) -> str:
    """
    Decode a route token back into an email.

    Plain emails pass through unchanged. Returns "guest" for an empty,
    guest, or undecodable token.
    """
    if not token or token == GUEST_ID:
        return GUEST_ID
    if "@" in token:
        return token

    restored = token.replace("-", "+").replace("_", "/")
    restored += "=" * (-len(restored) % 4)

    try:
        decoded = base64.b64decode(restored, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        logger.warning("Failed to decode identity token: {}", e)
        return GUEST_ID

    return decoded[::-1].replace(salt, "", 1)


def generate_initials(name: str | None, email: str | None = None) -> str:
    """Initials from a display name, falling back to the email local part."""
    if name and name != "Guest User":
        parts = name.split()
        if len(parts) >= 2:
            return (parts[0][0] + parts[-1][0]).upper()
        if len(parts) == 1:
            return parts[0][0].upper()

    if email and email != GUEST_ID:
        local = email.split("@")[0]
        if local:
            return local[:2].upper()

    return "GU"
