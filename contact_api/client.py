"""
Client-side submission pipeline for the contact endpoint.

Mirrors what the website does in the browser before anything goes over the
wire: field validation, the stricter spam heuristics and a minimum interval
between submissions. Raw field values are posted; the server escapes them.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from contact_api.core.spam import detect_spam
from contact_api.core.validation import validate_submission
from contact_api.models.contact import ContactResponse

logger = logging.getLogger(__name__)

MIN_SUBMISSION_INTERVAL = 30  # seconds
CONTACT_PATH = "/api/contact"

SPAM_REJECTED_MESSAGE = "Your message appears to contain spam content. Please revise and try again."
TOO_FREQUENT_MESSAGE = "Please wait a moment before sending another message."
CHECK_FIELDS_MESSAGE = "Please correct the highlighted fields and try again."
NETWORK_ERROR_MESSAGE = "Unable to reach the server. Please check your connection and try again."

FORM_FIELDS = ("firstName", "lastName", "email", "phone", "message")


class ContactFormClient:
    """
    Submit contact forms to a deployed backend.

    Args:
        base_url: Site root, e.g. "https://vabyanna.com"
        transport: Optional httpx transport (tests, proxies)
        clock: Current time in epoch seconds
        min_interval: Seconds required between two submissions
    """

    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
        min_interval: float = MIN_SUBMISSION_INTERVAL,
    ):
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.clock = clock
        self.min_interval = min_interval
        self.last_submission: Optional[float] = None

    def is_too_frequent(self) -> bool:
        """True if the previous submission was too recent; otherwise records this one"""
        now = self.clock()
        if self.last_submission is not None and now - self.last_submission < self.min_interval:
            return True
        self.last_submission = now
        return False

    async def submit(self, form: Dict[str, Any]) -> ContactResponse:
        fields = {key: form.get(key) for key in FORM_FIELDS if form.get(key) is not None}

        validation = validate_submission(fields)
        if not validation.is_valid:
            return ContactResponse(success=False, message=CHECK_FIELDS_MESSAGE, errors=validation.errors)

        if detect_spam(fields.get("message"), strict=True):
            return ContactResponse(success=False, message=SPAM_REJECTED_MESSAGE)

        if self.is_too_frequent():
            return ContactResponse(success=False, message=TOO_FREQUENT_MESSAGE)

        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport) as client:
                response = await client.post(CONTACT_PATH, json=fields, timeout=30.0)
        except httpx.HTTPError as e:
            logger.error(f"Contact form request failed: {str(e)}")
            return ContactResponse(success=False, message=NETWORK_ERROR_MESSAGE)

        try:
            return ContactResponse(**response.json())
        except (ValueError, TypeError):
            logger.error(f"Unexpected response from contact endpoint ({response.status_code})")
            return ContactResponse(success=False, message=NETWORK_ERROR_MESSAGE)
