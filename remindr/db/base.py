"""Declarative base for remindr ORM models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all remindr ORM models. Exposes metadata for create_all."""
