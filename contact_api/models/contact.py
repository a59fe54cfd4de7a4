from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any


class SubmissionInput(BaseModel):
    """Raw form fields exactly as the browser sent them (untrusted)"""
    model_config = ConfigDict(extra="ignore")

    firstName: Any = None
    lastName: Any = None
    email: Any = None
    phone: Any = None
    message: Any = None


class SanitizedSubmission(BaseModel):
    firstName: str
    lastName: str
    email: str
    phone: str = ""
    message: str
    timestamp: str  # ISO-8601, assigned by the server
    source: str = "website_contact_form"


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = []
    # Partial sanitized fields; complete only when is_valid
    data: Dict[str, Any] = {}

    @property
    def submission(self) -> Optional[SanitizedSubmission]:
        if not self.is_valid:
            return None
        return SanitizedSubmission(**self.data)


class RateLimitResult(BaseModel):
    allowed: bool
    remaining: int
    reset_time: float  # epoch seconds
    retry_after: int = 0


class EmailPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from")
    to: List[str]
    reply_to: str
    subject: str
    html: str
    text: str


class ContactResponse(BaseModel):
    success: bool
    message: str
    errors: Optional[List[str]] = None
    retryAfter: Optional[int] = None
