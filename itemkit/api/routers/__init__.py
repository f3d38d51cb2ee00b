"""HTTP routers.

- **auth**: ``POST /auth/login``
- **items**: CRUD on ``/items``, every route behind ``require_auth``
- **health**: ``GET /health``
"""
