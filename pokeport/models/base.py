"""
SQLAlchemy 2.0 async DeclarativeBase for PokePort.

All models inherit from this Base.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all PokePort database models."""
    pass
