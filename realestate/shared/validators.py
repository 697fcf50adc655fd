"""Shared validation utilities"""

import re
from datetime import time
from typing import Optional

PHONE_ALLOWED_PATTERN = r"^\+?[0-9\s\-().]{7,20}$"
TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])(:([0-5][0-9]))?$"


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

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a customer phone number.

    Customers call from anywhere, so only the character set and length are
    checked; the number is stored as entered (trimmed).

    Raises:
        ValueError: If the phone number is empty or malformed
    """
    if phone is None:
        return phone

    phone = phone.strip()
    if not phone:
        raise ValueError("Phone number is required")

    if not re.match(PHONE_ALLOWED_PATTERN, phone):
        raise ValueError("Invalid phone number")

    return phone


def parse_time_of_day(value) -> time:
    """
    Parse ``HH:MM`` or ``HH:MM:SS`` (24h) into a ``time``.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if isinstance(value, time):
        return value.replace(microsecond=0, tzinfo=None)

    if not isinstance(value, str):
        raise ValueError("Time must be a string in HH:MM or HH:MM:SS format")

    match = re.match(TIME_PATTERN, value.strip())
    if not match:
        raise ValueError("Time must be in HH:MM or HH:MM:SS format")

    hours, minutes, _, seconds = match.groups()
    return time(int(hours), int(minutes), int(seconds or 0))
