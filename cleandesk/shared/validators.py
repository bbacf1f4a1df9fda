"""Shared validation utilities"""

import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a North American phone number to E.164.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number (+1XXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    if digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]

    if len(digits) != 10:
        raise ValueError("Phone number must be 10 digits")

    return f"+1{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase, stripped email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError(f"Invalid email format: {email}")

    return email


def validate_slug(slug: str) -> str:
    """Organization slugs are lowercase words joined by single hyphens"""
    if not slug:
        raise ValueError("Slug is required")

    slug = slug.strip().lower()
    if not SLUG_PATTERN.match(slug):
        raise ValueError("Slug may only contain lowercase letters, numbers and hyphens")

    return slug


def slugify(label: str) -> str:
    """'Google Maps or GBP' -> 'google-maps-or-gbp'"""
    return re.sub(r"\s+", "-", label.strip().lower())


def make_org_slug(name: str) -> str:
    """'Sparkle & Shine Cleaning' -> 'sparkle-shine-cleaning'"""
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")
    return slug or "org"
