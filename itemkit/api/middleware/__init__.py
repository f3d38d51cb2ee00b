"""FastAPI middleware and exception handlers.

- **SecurityHeadersMiddleware**: adds security headers to every response
- **RequestContextMiddleware**: manages correlation IDs
- **RequestLoggingMiddleware**: request logging with slow-request warnings
- **error_handler**: the exception handlers that build the error envelope

Middleware run in reverse order of registration; ``create_app`` registers
them so that CORS sees the request first and request logging last.
"""
