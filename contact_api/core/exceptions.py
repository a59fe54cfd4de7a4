"""
Error taxonomy for the contact form pipeline.

Every failure raised below the request boundary is one of these; the contact
endpoint maps them onto a JSON response and never leaks the underlying detail.
"""

from typing import Dict, List, Optional


class ContactFormError(Exception):
    """Base class carrying everything needed to shape an HTTP response."""

    status_code = 500
    audit_status = "error"

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        headers: Optional[Dict[str, str]] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(detail or message)
        self.message = message
        self.errors = errors
        self.headers = headers or {}
        # Server-side only, never serialized into the response
        self.detail = detail


class ClientError(ContactFormError):
    """Malformed body or failed field validation."""

    status_code = 400
    audit_status = "validation_failed"


class SizeError(ContactFormError):
    status_code = 413
    audit_status = "payload_too_large"


class QuotaError(ContactFormError):
    status_code = 429
    audit_status = "rate_limited"

    def __init__(self, message: str, retry_after: int):
        super().__init__(message, headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after


class ConfigurationError(ContactFormError):
    """Missing provider credential or similar deployment mistake."""

    status_code = 500
    audit_status = "configuration_error"


class DeliveryError(ContactFormError):
    """The email provider rejected the message or was unreachable."""

    status_code = 500
    audit_status = "email_send_failed"

    def __init__(self, message: str, detail: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message, detail=detail)
        self.status = status
