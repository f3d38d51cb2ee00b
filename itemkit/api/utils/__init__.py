"""Utility modules for the API layer.

- **responses**: envelope helpers and the orjson response class
"""
