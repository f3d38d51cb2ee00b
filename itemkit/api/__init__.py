"""HTTP API layer with FastAPI for the itemkit service.

Key components:
- **main**: Application factory and lifecycle management
- **routers**: Authentication and item endpoints
- **validation**: Per-region request validation dependencies
- **dependencies**: Authentication and service wiring for route handlers
- **middleware**: Security headers, correlation IDs, request logging and
  centralized error handling
- **schemas**: Pydantic shapes for requests, responses and errors
- **utils**: Response envelope helpers and orjson rendering
"""
