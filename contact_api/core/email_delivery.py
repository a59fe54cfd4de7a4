"""
Email delivery through the Resend API.

Submissions arrive here already sanitized; nothing in this module escapes
again. Delivery is retried a bounded number of times with exponential backoff
so a single request never blocks for more than a few seconds.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from contact_api.core.config import Settings
from contact_api.core.exceptions import DeliveryError
from contact_api.models.contact import EmailPayload, SanitizedSubmission

logger = logging.getLogger(__name__)

MAX_RETRIES = 2
REQUEST_TIMEOUT = 15.0
GENERIC_FAILURE_MESSAGE = "Failed to send message. Please try again later."


def _readable_timestamp(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).strftime("%d %b %Y, %H:%M:%S %Z").strip()
    except ValueError:
        return timestamp


def create_email_content(data: SanitizedSubmission, settings: Settings) -> EmailPayload:
    """Build the notification email for one submission"""
    subject = f"New Contact Form Submission from {data.firstName} {data.lastName}"
    submitted = _readable_timestamp(data.timestamp)
    phone_html = f"<p><strong>Phone:</strong> {data.phone}</p>" if data.phone else ""
    phone_text = f"Phone: {data.phone}\n" if data.phone else ""
    message_html = data.message.replace("\r\n", "\n").replace("\n", "<br>")

    html = f"""
<h2>New Contact Form Submission</h2>
<p><strong>From:</strong> {data.firstName} {data.lastName}</p>
<p><strong>Email:</strong> {data.email}</p>
{phone_html}
<p><strong>Submitted:</strong> {submitted}</p>

<h3>Message:</h3>
<div style="background: #f5f5f5; padding: 15px; border-radius: 5px; margin: 10px 0;">
    {message_html}
</div>

<hr>
<p style="color: #666; font-size: 12px;">
    This message was sent from the {settings.site_name} contact form.
</p>
"""

    text = (
        "New Contact Form Submission\n\n"
        f"From: {data.firstName} {data.lastName}\n"
        f"Email: {data.email}\n"
        f"{phone_text}"
        f"Submitted: {submitted}\n\n"
        "Message:\n"
        f"{data.message}\n\n"
        "---\n"
        f"This message was sent from the {settings.site_name} contact form.\n"
    )

    return EmailPayload(
        from_=settings.mail_from,
        to=list(settings.mail_to),
        reply_to=data.email,
        subject=subject,
        html=html,
        text=text,
    )


async def send_with_resend(
    payload: EmailPayload,
    api_key: str,
    client: httpx.AsyncClient,
    url: str = "https://api.resend.com/emails",
) -> Dict[str, Any]:
    """
    Issue one request to Resend.

    Raises:
        DeliveryError: on any non-2xx status or transport failure
    """
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    try:
        response = await client.post(
            url,
            headers=headers,
            json=payload.model_dump(by_alias=True),
            timeout=REQUEST_TIMEOUT,
        )
    except httpx.HTTPError as e:
        raise DeliveryError(GENERIC_FAILURE_MESSAGE, detail=f"Resend request failed: {str(e)}")

    if not response.is_success:
        raise DeliveryError(
            GENERIC_FAILURE_MESSAGE,
            detail=f"Resend API error {response.status_code}: {response.text}",
            status=response.status_code,
        )

    try:
        return response.json()
    except ValueError:
        return {}


async def backoff_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def send_contact_email(
    data: SanitizedSubmission,
    api_key: str,
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Deliver a submission, retrying transient failures.

    Up to MAX_RETRIES + 1 attempts are made, waiting 2**attempt seconds
    (1s, then 2s) between them.

    Returns:
        dict: Resend response body (contains the email id)

    Raises:
        DeliveryError: once every attempt has failed
    """
    payload = create_email_content(data, settings)

    async with httpx.AsyncClient(transport=transport) as client:
        attempt = 0
        while True:
            try:
                result = await send_with_resend(payload, api_key, client, url=settings.resend_api_url)
                logger.info(f"✅ Contact email delivered (attempt {attempt + 1}, id={result.get('id')})")
                return result
            except DeliveryError as e:
                if attempt >= MAX_RETRIES:
                    logger.error(f"❌ Email delivery failed after {attempt + 1} attempts: {e.detail}")
                    raise
                delay = 2 ** attempt
                logger.warning(f"⚠️ Email delivery attempt {attempt + 1} failed ({e.detail}), retrying in {delay}s")
                await backoff_sleep(delay)
                attempt += 1
