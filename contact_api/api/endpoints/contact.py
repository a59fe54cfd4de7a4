"""
Contact form submission endpoint.

One request walks a fixed sequence and stops at the first failure:
size check, rate limit, parse, validate, spam check, delivery. Failures are
mapped onto a JSON body of {success, message, errors?}; raw exception detail
never reaches the caller. Audit records are written after the response.

A message flagged as spam still gets a success response, without delivery.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
from urllib.parse import parse_qs
import json
import logging

from contact_api.api.deps import Stores, get_email_transport, get_stores
from contact_api.core.audit import log_error, log_submission
from contact_api.core.config import Settings, get_settings
from contact_api.core.email_delivery import send_contact_email
from contact_api.core.exceptions import (
    ClientError, ConfigurationError, ContactFormError, DeliveryError, QuotaError, SizeError
)
from contact_api.core.rate_limit import check_rate_limit, client_address
from contact_api.core.spam import detect_spam
from contact_api.core.validation import validate_submission
from contact_api.models.contact import ContactResponse

router = APIRouter()
logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 10 * 1024

SUCCESS_MESSAGE = "Message sent successfully"
SPAM_ACCEPTED_MESSAGE = "Message received successfully"
TOO_LARGE_MESSAGE = "Request too large"
RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."
INVALID_FORMAT_MESSAGE = "Invalid request format"
VALIDATION_FAILED_MESSAGE = "Validation failed"
INTERNAL_ERROR_MESSAGE = "Internal server error. Please try again later."
DELIVERY_FAILED_MESSAGE = "Failed to send message. Please try again later or email us directly at {contact_email}."


def contact_response(
    status_code: int,
    success: bool,
    message: str,
    errors=None,
    retry_after: Optional[int] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body = ContactResponse(success=success, message=message, errors=errors, retryAfter=retry_after)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers
    )


def check_content_length(headers) -> None:
    """Reject bodies whose declared size is over the limit"""
    content_length = headers.get("Content-Length")
    if not content_length:
        return
    try:
        declared = int(content_length)
    except ValueError:
        return
    if declared > MAX_BODY_BYTES:
        raise SizeError(TOO_LARGE_MESSAGE)


async def parse_form_data(request: Request) -> Dict[str, Any]:
    """
    Read the body as JSON or URL-encoded form data depending on Content-Type.

    Raises:
        ClientError: unsupported content type, malformed body or non-object JSON
        SizeError: body larger than the limit despite its declared length
    """
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        # Stop reading as soon as the limit is crossed
        if received > MAX_BODY_BYTES:
            raise SizeError(TOO_LARGE_MESSAGE)
        chunks.append(chunk)
    body = b"".join(chunks)

    content_type = request.headers.get("Content-Type", "").lower()
    try:
        if "application/json" in content_type:
            form_data = json.loads(body)
        elif "application/x-www-form-urlencoded" in content_type:
            parsed = parse_qs(body.decode("utf-8"), keep_blank_values=True, strict_parsing=bool(body))
            form_data = {key: values[0] for key, values in parsed.items()}
        else:
            raise ClientError(INVALID_FORMAT_MESSAGE, detail=f"Unsupported content type: {content_type or 'none'}")
    except ValueError as e:
        raise ClientError(INVALID_FORMAT_MESSAGE, detail=f"Malformed request body: {str(e)}")

    if not isinstance(form_data, dict):
        raise ClientError(INVALID_FORMAT_MESSAGE, detail="Request body must be an object")

    return form_data


def schedule_audit(
    background_tasks: BackgroundTasks,
    error: ContactFormError,
    stores: Stores,
    context: Dict[str, Any],
) -> None:
    """Queue the audit record for an abnormal termination"""
    if isinstance(error, (ConfigurationError, DeliveryError)):
        background_tasks.add_task(log_error, error, {"type": error.audit_status, **context}, stores.error_logs)
        return

    entry = {"status": error.audit_status, **context}
    if error.errors:
        entry["errors"] = error.errors
    background_tasks.add_task(log_submission, entry, stores.analytics)


@router.post("/contact")
async def submit_contact_form(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    stores: Stores = Depends(get_stores),
    transport=Depends(get_email_transport),
):
    """
    Accept a contact form submission and forward it by email.

    Returns:
        200 delivered (or silently accepted spam), 400 malformed/invalid,
        413 too large, 429 rate limited, 500 configuration or delivery failure
    """
    client_ip = client_address(request.headers)
    context = {
        "ip": client_ip,
        "userAgent": request.headers.get("User-Agent"),
    }

    try:
        check_content_length(request.headers)

        rate_limit = await check_rate_limit(stores.rate_limit, client_ip)
        if not rate_limit.allowed:
            raise QuotaError(RATE_LIMITED_MESSAGE, retry_after=rate_limit.retry_after)

        form_data = await parse_form_data(request)

        validation = validate_submission(form_data)
        if not validation.is_valid:
            raise ClientError(VALIDATION_FAILED_MESSAGE, errors=validation.errors)

        submission = validation.submission

        if detect_spam(submission.message):
            logger.info(f"🛑 Spam suppressed from {client_ip}")
            background_tasks.add_task(
                log_submission,
                {"status": "spam_detected", "email": submission.email, **context},
                stores.analytics
            )
            return contact_response(200, True, SPAM_ACCEPTED_MESSAGE)

        if not settings.resend_api_key:
            raise ConfigurationError(INTERNAL_ERROR_MESSAGE, detail="Email service not configured: RESEND_API_KEY missing")

        try:
            result = await send_contact_email(submission, settings.resend_api_key, settings, transport=transport)
        except DeliveryError as e:
            e.message = DELIVERY_FAILED_MESSAGE.format(contact_email=settings.contact_email)
            raise

        background_tasks.add_task(
            log_submission,
            {"status": "success", "email": submission.email, "emailId": result.get("id"), **context},
            stores.analytics
        )
        return contact_response(200, True, SUCCESS_MESSAGE)

    except ContactFormError as e:
        if isinstance(e, (ConfigurationError, DeliveryError)):
            logger.error(f"❌ Contact form {e.audit_status} for {client_ip}: {e.detail}")
        else:
            logger.info(f"Contact form rejected ({e.audit_status}) for {client_ip}: {e.detail or e.message}")
        schedule_audit(background_tasks, e, stores, context)
        retry_after = e.retry_after if isinstance(e, QuotaError) else None
        return contact_response(e.status_code, False, e.message, errors=e.errors, retry_after=retry_after, headers=e.headers)

    except Exception as e:
        logger.error(f"❌ Unexpected error handling contact form from {client_ip}: {str(e)}")
        background_tasks.add_task(
            log_error, e, {"url": str(request.url), "method": request.method, **context}, stores.error_logs
        )
        return contact_response(500, False, INTERNAL_ERROR_MESSAGE)
