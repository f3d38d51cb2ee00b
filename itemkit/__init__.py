"""itemkit - an authenticated, paginated HTTP resource service.

itemkit exposes a relational resource ("items") over HTTP with token
authentication, schema-driven validation, pagination and a uniform error
contract.

Architecture Overview:
- **API Layer**: FastAPI routers, validation dependencies and middleware
- **Core Layer**: Configuration, exceptions, logging, security primitives
- **Domain Layer**: The item model, its repository and its service
- **Infrastructure Layer**: Async database engine, sessions and repositories

Every request flows through the same pipeline: validation, authentication
(for protected routes), the service/repository pair, the response envelope,
and the centralized error handlers that translate failures to responses.
"""
