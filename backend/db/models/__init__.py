"""Package for ORM model definitions."""

from db.models.layer import Layer

__all__ = ["Layer"]
