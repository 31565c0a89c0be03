# schemas.py
"""
Pydantic models for the CRM client.

Defines the client configuration and the log record handed to the
caller-supplied logger after every call.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

import config


class LogRecord(BaseModel):
    """One completed or failed call against the vendor API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    endpoint: str = Field(description="Endpoint path relative to the base URL")
    request_body: Any = Field(default=None, description="Payload sent to the vendor")
    response_body: Any = Field(default=None, description="Decoded vendor response")
    latency: float = Field(description="Round trip time in milliseconds")
    http_response_code: Optional[int] = Field(
        default=None, description="HTTP status, None when no response arrived"
    )
    info: Optional[str] = Field(default=None, description="Free-text diagnostic")


class CRMConfig(BaseModel):
    """Connection settings for a CRM client."""

    base_url: str = Field(default=config.PRODUCTION_URL, description="API root URL")
    api_key: str = Field(min_length=1, description="Value of the APIKey header")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    @field_validator("base_url")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else f"{value}/"

    @classmethod
    def from_env(cls) -> "CRMConfig":
        """
        Build a config from CRM_* environment variables.

        Returns:
            CRMConfig populated from the config module.

        Raises:
            ValueError: If CRM_API_KEY is not set.
        """
        if not config.CRM_API_KEY:
            raise ValueError(
                "CRM_API_KEY is required when no config is passed. "
                "Set it in your .env file."
            )
        return cls(
            base_url=config.CRM_API_URL,
            api_key=config.CRM_API_KEY,
            timeout=config.CRM_TIMEOUT,
        )
