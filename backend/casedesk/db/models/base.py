"""
Declarative base plus the id/time helpers shared by ORM rows and records.

Every model module imports `Base` from here; `casedesk.db.models`
re-exports the models so `Base.metadata.create_all` creates them all.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# ─── Shared helpers ───────────────────────────
def generate_uuid() -> str:
    """Random record id (UUID v4, as text)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)
