# src/saasbasic/db/__init__.py
# models are imported explicitly (saasbasic.db.models) so importing the
# package never touches a driver
from .base import Base, IdMixin, TimestampMixin

__all__ = ["Base", "IdMixin", "TimestampMixin"]
