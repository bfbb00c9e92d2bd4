# zbooks_toolbag/errors.py


class BooksConnectionError(ConnectionError):
    """Raised when a MongoDB session cannot be established or is used while closed."""


class BooksOperationError(RuntimeError):
    """Raised when a query, update, delete, aggregation, index or explain call fails."""
