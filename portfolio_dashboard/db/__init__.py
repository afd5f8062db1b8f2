"""
Database init - declarative base exports
"""

from .base import Base, TimestampMixin

__all__ = ["Base", "TimestampMixin"]
