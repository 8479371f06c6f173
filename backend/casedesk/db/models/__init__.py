"""
Models package — re-exports Base and all models.

Import models here so `Base.metadata.create_all` picks up every
table automatically.

When adding a new model:
    1. Create `casedesk/db/models/<table_name>.py`
    2. Import it here
"""

from casedesk.db.models.base import Base
from casedesk.db.models.kv_entry import KeyValueEntry

__all__ = [
    "Base",
    "KeyValueEntry",
]
