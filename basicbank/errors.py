"""Database errors and helpers for classifying them."""

FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"


class NoRowsError(LookupError):
    """Raised when a query that should return one row returns none."""

    def __init__(self, message="no rows in result set"):
        super().__init__(message)


class DatabaseError(Exception):
    """An error reported by the database, carrying its SQLSTATE code."""

    def __init__(self, code, message, severity="ERROR"):
        super().__init__(code, message, severity)
        self.code = code
        self.message = message
        self.severity = severity

    def __str__(self):
        return f"{self.severity}: {self.message} (SQLSTATE {self.code})"


def _chain(err):
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        if err.__cause__ is not None:
            err = err.__cause__
        elif not err.__suppress_context__:
            err = err.__context__
        else:
            err = None


def error_code(err):
    """Return the SQLSTATE code of the first DatabaseError in ``err``'s chain, or ""."""
    for item in _chain(err):
        if isinstance(item, DatabaseError):
            return item.code
    return ""