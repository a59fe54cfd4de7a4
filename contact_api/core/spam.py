"""
Cheap, explainable spam signals for contact form messages.

A flagged message is never rejected outright: the endpoint reports success and
quietly skips delivery so automated senders learn nothing from the response.
"""

import html
import re

SPAM_KEYWORDS = [
    "viagra", "casino", "lottery", "winner", "congratulations",
    "click here", "free money",
]

# Extra keywords the browser pipeline checks before it ever submits
STRICT_SPAM_KEYWORDS = SPAM_KEYWORDS + [
    "make money fast", "work from home", "guaranteed income",
    "no experience required", "act now",
]

MAX_LINKS = 2
ALL_CAPS_MIN_LENGTH = 20
MAX_DIGIT_RATIO = 0.3
MAX_EMBEDDED_EMAILS = 1

LINK_REGEX = re.compile(r"https?://", re.IGNORECASE)
REPEATED_CHAR_REGEX = re.compile(r"(.)\1{10,}", re.DOTALL)
EMBEDDED_EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


def has_spam_keywords(message: str, keywords=SPAM_KEYWORDS) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in keywords)


def has_excessive_links(message: str) -> bool:
    return len(LINK_REGEX.findall(message)) > MAX_LINKS


def has_repeated_chars(message: str) -> bool:
    return bool(REPEATED_CHAR_REGEX.search(message))


def is_all_caps(message: str) -> bool:
    # isupper() needs at least one cased character, so "1234..." is not shouting
    return len(message) > ALL_CAPS_MIN_LENGTH and message.isupper()


def has_excessive_digits(message: str) -> bool:
    digits = sum(1 for c in message if c.isdigit())
    return digits > len(message) * MAX_DIGIT_RATIO


def has_multiple_emails(message: str) -> bool:
    return len(EMBEDDED_EMAIL_REGEX.findall(message)) > MAX_EMBEDDED_EMAILS


def detect_spam(message, strict: bool = False) -> bool:
    """
    Classify a message body as likely spam.

    Args:
        message: The (sanitized) message text
        strict: Also apply the client-side hardening signals

    Returns:
        bool: True if any signal fires
    """
    if not message or not isinstance(message, str):
        return False

    # Signals look at the text as written, not at its escaped form
    message = html.unescape(message)
    keywords = STRICT_SPAM_KEYWORDS if strict else SPAM_KEYWORDS
    if (
        has_spam_keywords(message, keywords)
        or has_excessive_links(message)
        or has_repeated_chars(message)
        or is_all_caps(message)
    ):
        return True

    if strict:
        return has_excessive_digits(message) or has_multiple_emails(message)

    return False
