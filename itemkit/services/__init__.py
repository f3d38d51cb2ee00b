"""Application services that are not tied to a stored resource."""
