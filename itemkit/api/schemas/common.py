"""Shapes shared by every route."""

from typing import Literal

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Envelope of a successful response without payload."""

    success: Literal[True] = Field(default=True, description="Always true")
