"""Document collection names.

The document store has no DDL. Collections appear on first write, so these
constants are the single source of truth for the "schema".
"""

COLLECTION_ACCOUNTS = "accounts"
COLLECTION_CLASSES = "classes"
COLLECTION_ROSTER_ENTRIES = "roster_entries"

# Invite ledger (append-only)
COLLECTION_INVITES = "invites"
COLLECTION_ADMIN_INVITES = "admin_invites"

# Leaf records owned by one roster entry
COLLECTION_HOMEWORK = "homework"
COLLECTION_ATTENDANCE = "attendance"
