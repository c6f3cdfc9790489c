# ledger/exceptions.py
"""
Ledger error taxonomy.

Every error carries a human-readable reason and the HTTP status the API
layer renders it with. UnbalancedEntryError and InvalidStateError are
PostingError subtypes, so callers that only care whether a posting
failed can catch PostingError.
"""


class LedgerError(Exception):
    http_status = 400

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class NotFoundError(LedgerError):
    """Account or journal entry does not exist."""
    http_status = 404


class PostingError(LedgerError):
    """Generic commit failure."""
    http_status = 500


class UnbalancedEntryError(PostingError):
    """Debits and credits differ, or the lines cannot form a valid entry."""
    http_status = 400


class InvalidStateError(PostingError):
    """Entry or account is not in a state that allows the operation."""
    http_status = 400
