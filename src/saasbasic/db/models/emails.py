# src/saasbasic/db/models/emails.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from saasbasic.db.base import Base, IdMixin, TimestampMixin


class Email(IdMixin, TimestampMixin, Base):
    __tablename__ = "emails"

    to_email: Mapped[str] = mapped_column(sa.String(255), nullable=False, index=True)
    from_email: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    subject: Mapped[str] = mapped_column(sa.String(500), nullable=False)
    body: Mapped[str] = mapped_column(sa.Text, nullable=False)
    html_body: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[str] = mapped_column(sa.String(50), default="pending", index=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True), index=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    error_message: Mapped[Optional[str]] = mapped_column(sa.Text)
    organization_id: Mapped[int] = mapped_column(
        sa.ForeignKey("organizations.id"), nullable=False, index=True
    )
