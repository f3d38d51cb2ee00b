"""Error envelope returned by every failing request.

These models document the wire format in OpenAPI; the handlers build the
same shape through ``itemkit.api.utils.responses.error_response``.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """One violated constraint."""

    path: str = Field(
        ...,
        description="Dotted location of the offending field",
        examples=["name", "limit", "body"],
    )
    message: str = Field(
        ...,
        description="Why the value was rejected",
        examples=["String should have at least 1 character"],
    )


class ErrorResponse(BaseModel):
    """Uniform error envelope.

    ``details`` is omitted when there is nothing to add. For validation
    failures it lists the issues; outside production an unclassified error
    carries its type and stack trace.
    """

    success: Literal[False] = Field(default=False, description="Always false")

    error: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Item not found", "Invalid request data", "Token expired"],
    )

    details: list[ValidationIssue] | dict[str, Any] | None = Field(
        default=None,
        description="Additional error details, omitted when empty",
        examples=[[{"path": "name", "message": "Field required"}]],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "success": False,
                    "error": "Invalid request data",
                    "details": [
                        {"path": "name", "message": "Field required"},
                    ],
                },
                {"success": False, "error": "Item not found"},
                {"success": False, "error": "Authentication token missing"},
                {"success": False, "error": "Internal server error"},
            ]
        }
    }
