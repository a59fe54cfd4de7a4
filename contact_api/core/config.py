from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Resend credential - delivery is impossible without it
    resend_api_key: Optional[str] = None
    resend_api_url: str = "https://api.resend.com/emails"

    # MongoDB backs the keyed stores; every binding below is optional
    mongodb_url: Optional[str] = None
    rate_limit_collection: Optional[str] = None
    analytics_collection: Optional[str] = None
    error_logs_collection: Optional[str] = None

    # Mail envelope
    mail_from: str = "VA by Anna Contact Form <noreply@vabyanna.com>"
    mail_to: list[str] = ["anna@vabyanna.com"]
    contact_email: str = "anna@vabyanna.com"
    site_name: str = "vabyanna.com"

    # CORS settings
    allowed_origins: list[str] = ["*"]

    @property
    def email_configured(self) -> bool:
        return bool(self.resend_api_key)

@lru_cache
def get_settings():
    return Settings()
