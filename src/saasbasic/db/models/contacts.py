# src/saasbasic/db/models/contacts.py
from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from saasbasic.db.base import Base, IdMixin, TimestampMixin


class Contact(IdMixin, TimestampMixin, Base):
    """Inbound contact requests (name, subject, free-text message)."""

    __tablename__ = "contacts"

    name: Mapped[str] = mapped_column(sa.String(255), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(sa.String(255), index=True)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(50))
    subject: Mapped[Optional[str]] = mapped_column(sa.String(255))
    message: Mapped[Optional[str]] = mapped_column(sa.Text)
    type: Mapped[str] = mapped_column(sa.String(50), default="contact", index=True)
    organization_id: Mapped[int] = mapped_column(
        sa.ForeignKey("organizations.id"), nullable=False, index=True
    )
    active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
