"""
Server-side validation and sanitization for contact form submissions.

The browser runs the same checks, but nothing it sends is trusted: every field
is re-validated here and escaped exactly once before it can reach an email body.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from contact_api.models.contact import SubmissionInput, ValidationResult

logger = logging.getLogger(__name__)

MAX_INPUT_LENGTH = 10000
SOURCE_TAG = "website_contact_form"

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_REGEX = re.compile(r"^\+?[\d\s\-()]{7,20}$")

# Single-pass table: output of one substitution is never fed to another.
# "&" is deliberately absent, so escape() is idempotent on its own output.
ESCAPE_TABLE = str.maketrans({
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
    "\\": "&#x5C;",
})

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 254
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 5000


def escape(value: Any) -> str:
    """Trim, escape HTML-significant characters and cap the length."""
    if not isinstance(value, str) or not value:
        return ""
    return value.strip().translate(ESCAPE_TABLE)[:MAX_INPUT_LENGTH]


def is_required(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def has_min_length(value: str, min_length: int) -> bool:
    return len(value.strip()) >= min_length


def has_max_length(value: str, max_length: int) -> bool:
    return len(value.strip()) <= max_length


def is_valid_email(email: Any) -> bool:
    if not isinstance(email, str):
        return False
    return bool(EMAIL_REGEX.match(email.strip()))


def is_valid_phone(phone: Any) -> bool:
    """Phone is optional: None or blank passes."""
    if phone is None:
        return True
    if not isinstance(phone, str):
        return False
    if not phone.strip():
        return True
    return bool(PHONE_REGEX.match(phone.strip()))


def _check_text_field(
    value: Any,
    label: str,
    min_length: int,
    max_length: int,
) -> Optional[str]:
    """Return the first failing rule's message for a required text field, or None."""
    if not is_required(value):
        return f"{label} is required"
    if not has_min_length(value, min_length):
        return f"{label} must be at least {min_length} characters long"
    if not has_max_length(value, max_length):
        return f"{label} must be less than {max_length} characters"
    return None


def validate_submission(raw: Any) -> ValidationResult:
    """
    Validate and sanitize one contact form submission.

    All fields are checked independently and every failure is collected, in
    field order. Inside a field the checks stop at the first failure, so a
    missing field yields a single "is required" error.

    Args:
        raw: SubmissionInput, mapping of form fields, or anything else

    Returns:
        ValidationResult: is_valid flag, ordered error messages and the
        sanitized fields that passed
    """
    if isinstance(raw, SubmissionInput):
        fields: Mapping[str, Any] = raw.model_dump()
    elif isinstance(raw, Mapping):
        fields = raw
    else:
        fields = {}

    errors: List[str] = []
    data: Dict[str, Any] = {}

    for key, label in (("firstName", "First name"), ("lastName", "Last name")):
        error = _check_text_field(fields.get(key), label, NAME_MIN_LENGTH, NAME_MAX_LENGTH)
        if error:
            errors.append(error)
        else:
            data[key] = escape(fields[key])

    email = fields.get("email")
    if not is_required(email):
        errors.append("Email is required")
    elif not is_valid_email(email):
        errors.append("Please enter a valid email address")
    elif not has_max_length(email, EMAIL_MAX_LENGTH):
        errors.append(f"Email must be less than {EMAIL_MAX_LENGTH} characters")
    else:
        data["email"] = escape(email).lower()

    phone = fields.get("phone")
    if not is_valid_phone(phone):
        errors.append("Please enter a valid phone number")
    else:
        data["phone"] = escape(phone)

    error = _check_text_field(fields.get("message"), "Message", MESSAGE_MIN_LENGTH, MESSAGE_MAX_LENGTH)
    if error:
        errors.append(error)
    else:
        data["message"] = escape(fields["message"])

    data["timestamp"] = datetime.now(timezone.utc).isoformat()
    data["source"] = SOURCE_TAG

    if errors:
        logger.info(f"Submission failed validation with {len(errors)} error(s)")

    return ValidationResult(is_valid=not errors, errors=errors, data=data)
