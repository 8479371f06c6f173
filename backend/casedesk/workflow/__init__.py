"""
Workflow package — the rules around a profile.

    permissions.py  pure edit/delete/approve predicates
    locking.py      single-viewer lock protocol
    lifecycle.py    status state machine and document changes
"""
