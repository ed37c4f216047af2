# src/saasbasic/db/models/plans.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from saasbasic.db.base import Base, IdMixin, TimestampMixin


class Plan(IdMixin, TimestampMixin, Base):
    __tablename__ = "plans"

    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    slug: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    price: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(sa.String(10), nullable=False, default="EUR")
    invoice_period: Mapped[str] = mapped_column(sa.String(50), nullable=False, default="monthly")
    max_users: Mapped[int] = mapped_column(sa.Integer, default=10)
    max_clients: Mapped[int] = mapped_column(sa.Integer, default=100)
    # comma separated feature list; searched with LIKE
    features: Mapped[Optional[str]] = mapped_column(sa.Text)
    active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True, index=True)
