# fridaygt/core/log_utils.py
"""
Helpers for keeping personal data out of production logs.
"""
from fridaygt.core.config import get_settings


def mask_email(email: str | None) -> str:
    """
    'driver@example.com' -> 'd***@example.com' (unmasked in development).
    """
    if not email:
        return "<none>"
    if get_settings().is_development:
        return email
    local, sep, domain = email.partition("@")
    if not sep:
        return local[:1] + "***"
    return f"{local[:1]}***@{domain}"


def mask_id(value: object | None) -> str:
    """Keep the first 8 characters of an id."""
    if value is None:
        return "<none>"
    text = str(value)
    if get_settings().is_development:
        return text
    return text[:8] + "..."
