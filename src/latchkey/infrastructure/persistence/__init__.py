"""Persistence layer: SQLAlchemy async engine, models and repositories."""
