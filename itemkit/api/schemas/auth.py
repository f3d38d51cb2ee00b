"""Login shapes."""

from typing import Literal

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credential submitted to ``POST /auth/login``."""

    password: str = Field(..., min_length=1, description="The shared credential")


class LoginResponse(BaseModel):
    """Successful login; the same token is also set as a cookie."""

    success: Literal[True] = True
    token: str = Field(..., description="Signed access token")
