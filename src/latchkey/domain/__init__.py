"""Domain layer: entities and services for credential and token lifecycles."""
