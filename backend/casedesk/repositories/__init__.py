"""
Repositories package — data-access layer.

Each repository file handles all storage operations for one record
type.  Repositories do NOT handle HTTP concerns or workflow rules
beyond basic data integrity.

Convention:
    - One file per collection (users.py, profiles.py, sessions.py)
    - Every repository receives its `KeyValueBackend` explicitly
    - Writes persist immediately; there is no commit step
"""
