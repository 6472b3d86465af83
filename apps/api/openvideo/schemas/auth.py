"""Authentication schemas."""

from pydantic import BaseModel, Field


class AuthPrincipal(BaseModel):
    """Normalized authenticated caller used by business services."""

    username: str = Field(min_length=1)
