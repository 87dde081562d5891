"""
Exception hierarchy for SpendLite.

Parsing never raises: bad amounts become 0, bad dates become None and
malformed rule lines are dropped. The exceptions below cover the few
places where a caller has to react.
"""


class SpendLiteError(Exception):
    """Base class for all SpendLite errors"""


class CsvIngestionError(SpendLiteError):
    """Raised when a statement export cannot be read as CSV.

    The import is aborted and the in-memory transactions stay untouched.
    """


class RuleError(SpendLiteError):
    """Raised when a rule cannot be created (empty keyword or category)
    or a rules file cannot be read.
    """


class StorageError(SpendLiteError):
    """Raised by a key/value store backend when a read or write fails.

    StateRepository swallows these so the session keeps running in memory.
    """
