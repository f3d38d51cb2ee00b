"""Domain layer: the resources exposed by the service."""
