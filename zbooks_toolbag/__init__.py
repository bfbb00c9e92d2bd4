# zbooks_toolbag/__init__.py
"""
Public package API.
Use only relative imports here to avoid circular imports.
"""
from .errors import BooksConnectionError, BooksOperationError
from .models import (
    Book,
    BookByline,
    BookPrice,
    BookSummary,
    DecadeBucket,
    ExplainStats,
    GenrePriceStats,
    TopAuthor,
)
from .safe_result import SafeResult
from .zbooks import ZBooks
from .zconnection import ZConnection
from .query_runner import QueryRunner

__all__ = [
    "Book",
    "BookByline",
    "BookPrice",
    "BookSummary",
    "BooksConnectionError",
    "BooksOperationError",
    "DecadeBucket",
    "ExplainStats",
    "GenrePriceStats",
    "QueryRunner",
    "SafeResult",
    "TopAuthor",
    "ZBooks",
    "ZConnection",
]
