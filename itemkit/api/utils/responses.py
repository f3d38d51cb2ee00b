"""Response envelope helpers and the orjson response class.

Every body the API returns is either ``{"success": true, ...}`` or
``{"success": false, "error": ..., "details"?: ...}``. ``ORJSONResponse``
is the application's default response class.
"""

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def success_response(**data: Any) -> dict[str, Any]:  # noqa: ANN401
    """Wrap a successful payload.

    Examples:
        >>> success_response(id=7)
        {'success': True, 'id': 7}
    """
    return {"success": True, **data}


def error_response(message: str, details: Any = None) -> dict[str, Any]:  # noqa: ANN401
    """Build the error envelope; ``details`` is left out when empty.

    Examples:
        >>> error_response("Item not found")
        {'success': False, 'error': 'Item not found'}
    """
    body: dict[str, Any] = {"success": False, "error": message}
    if details:
        body["details"] = details
    return body


class ORJSONResponse(JSONResponse):
    """JSON response rendered with orjson.

    orjson handles ``datetime`` values natively, so stored timestamps are
    emitted as RFC 3339 strings without a custom encoder.
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - accepts any JSON-serializable content
        """Render the content as JSON using orjson.

        Args:
            content: The content to serialize to JSON.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json", by_alias=True)

        return orjson.dumps(content, option=orjson.OPT_NON_STR_KEYS)
