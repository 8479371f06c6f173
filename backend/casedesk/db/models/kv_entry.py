"""
KeyValueEntry model — one serialized collection per row.

Rows:
    users     — JSON list of User records
    profiles  — JSON list of Profile records
    sessions  — JSON object of session token → session marker
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from casedesk.db.models.base import Base, utcnow


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(120), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<KeyValueEntry key={self.key} size={len(self.value)}>"
