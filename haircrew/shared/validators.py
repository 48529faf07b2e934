"""Shared validation utilities"""

import re
from typing import Optional

NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
INDIAN_PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")
PINCODE_PATTERN = re.compile(r"^[1-9][0-9]{5}$")
SKU_PATTERN = re.compile(r"^[A-Z0-9-]+$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Trimmed, lowercase email address, or None when no email was given

    Raises:
        ValueError: If email format is invalid
    """
    if email is None:
        return None

    email = email.strip().lower()
    if not email or not EMAIL_PATTERN.match(email):
        raise ValueError("Please enter a valid email address")
    return email


def validate_person_name(value: str, label: str = "Name") -> str:
    """Letters and spaces only, 2-50 characters"""
    value = value.strip()
    if len(value) < 2:
        raise ValueError(f"{label} must be at least 2 characters")
    if len(value) > 50:
        raise ValueError(f"{label} must be less than 50 characters")
    if not NAME_PATTERN.match(value):
        raise ValueError(f"{label} can only contain letters and spaces")
    return value


def validate_password_strength(password: str) -> str:
    """
    8-100 characters with at least one uppercase, one lowercase and one digit.

    Raises:
        ValueError: describing the first rule that fails
    """
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if len(password) > 100:
        raise ValueError("Password must be less than 100 characters")
    if not (re.search(r"[A-Z]", password) and re.search(r"[a-z]", password) and re.search(r"\d", password)):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    return password


def validate_indian_phone(phone: str) -> str:
    """10-digit Indian mobile number starting 6-9"""
    phone = phone.strip()
    if not INDIAN_PHONE_PATTERN.match(phone):
        raise ValueError("Please enter a valid 10-digit phone number")
    return phone


def validate_pincode(pincode: str) -> str:
    pincode = pincode.strip()
    if not PINCODE_PATTERN.match(pincode):
        raise ValueError("Please enter a valid 6-digit pincode")
    return pincode


def validate_image_url(url: str) -> str:
    if not URL_PATTERN.match(url):
        raise ValueError("Invalid image URL")
    return url


def validate_street_address(address: str) -> str:
    address = address.strip()
    if len(address) < 10:
        raise ValueError("Address must be at least 10 characters")
    if len(address) > 200:
        raise ValueError("Address must be less than 200 characters")
    return address
