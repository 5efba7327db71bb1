"""Declarative base re-export for the ORM models."""

from gradebook.database import Base

__all__ = ["Base"]
