# src/saasbasic/db/models/customers.py
from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from saasbasic.db.base import Base, IdMixin, TimestampMixin


class Customer(IdMixin, TimestampMixin, Base):
    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(50))
    company: Mapped[Optional[str]] = mapped_column(sa.String(255))
    street: Mapped[Optional[str]] = mapped_column(sa.String(255))
    zip: Mapped[Optional[str]] = mapped_column(sa.String(20))
    city: Mapped[Optional[str]] = mapped_column(sa.String(255))
    country: Mapped[Optional[str]] = mapped_column(sa.String(255))
    plan_id: Mapped[Optional[int]] = mapped_column(sa.ForeignKey("plans.id"), index=True)
    organization_id: Mapped[int] = mapped_column(
        sa.ForeignKey("organizations.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(sa.String(50), default="active", index=True)
    active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True, index=True)
