"""
Services package — what a client calls.

    case_desk.py  per-user sessions over the shared stores
    listing.py    list view search and tabs
    reports.py    dashboard statistics
"""
