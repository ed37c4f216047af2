# src/saasbasic/db/models/organizations.py
from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from saasbasic.db.base import Base, IdMixin, TimestampMixin


class Organization(IdMixin, TimestampMixin, Base):
    """Tenants. Tenant-scoped rows point here through organization_id."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"Organization(id={self.id!r}, slug={self.slug!r})"
