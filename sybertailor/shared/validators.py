"""Shared validation utilities"""

import re
from typing import Optional


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a phone number loosely (local or international).

    Keeps an optional leading + and the digits; 7 to 15 digits are accepted.

    Raises:
        ValueError: If the number has too few or too many digits
    """
    if not phone:
        return phone

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)
    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must have between 7 and 15 digits")

    return f"+{digits}" if phone.startswith("+") else digits


def split_csv(value) -> list[str]:
    """'a, b,,c' -> ['a', 'b', 'c']; lists are trimmed the same way"""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def validate_choice(value: Optional[str], choices, field: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if value not in choices:
        raise ValueError(f"{field} must be one of: {', '.join(choices)}")
    return value
