"""Pydantic schema models for API request validation and response shapes.

- **auth**: login request and response
- **items**: item inputs, query and path shapes, item responses
- **common**: the success envelope shared by every route
- **errors**: the error envelope, used for OpenAPI documentation
"""
