"""Data normalization utilities for consistent data quality."""

from typing import Optional


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Trimmed, lowercased email or None if empty
    """
    if not email:
        return None
    normalized = email.strip().lower()
    return normalized or None


def email_local_part(email: str) -> str:
    """Return the part of an address before `@` (the whole value if there is none)."""
    return email.split("@", 1)[0]


def normalize_subject(subject: Optional[str]) -> Optional[str]:
    """Collapse whitespace in a subject line; None if nothing is left."""
    if not subject:
        return None
    normalized = " ".join(subject.strip().split())
    return normalized or None
