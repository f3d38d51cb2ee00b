"""Infrastructure layer for data persistence.

Concrete implementations of the storage concerns the item domain depends
on: the async PostgreSQL pool, the generic repository and the FastAPI
dependency exposing the pool handle.
"""
