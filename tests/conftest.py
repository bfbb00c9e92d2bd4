import os
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from zbooks_toolbag.errors import BooksConnectionError
from zbooks_toolbag.zbooks import ZBooks
from zbooks_toolbag.zconnection import ZConnection


def _make_cursor(docs):
    """A motor-like cursor: chainable sort/skip/limit and an awaitable to_list."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


@pytest.fixture
def mock_collection():
    return MagicMock()


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__.return_value = mock_collection
    db.command = AsyncMock()
    return db


@pytest.fixture
def zbooks(mock_db):
    return ZBooks(mock_db, "books")


@pytest_asyncio.fixture
async def live_books():
    """
    ZBooks bound to a throwaway database on a real server.
    Skips when nothing answers at MONGO_URI (or the local default).
    """
    connection = ZConnection(
        db_name=f"zbooks_test_{uuid.uuid4().hex[:8]}",
        server_selection_timeout_ms=int(os.getenv("ZBOOKS_TEST_TIMEOUT_MS", "1500")),
    )
    # Ignore a database named in an Atlas URI; tests always use their own.
    connection.uri = os.getenv("MONGO_URI", "mongodb://127.0.0.1:27017")
    try:
        await connection.connect()
    except BooksConnectionError as e:
        pytest.skip(f"MongoDB not available: {e}")

    db = connection.client[connection.db_name]
    yield ZBooks(db, "books")

    await connection.client.drop_database(connection.db_name)
    connection.close()


@pytest.fixture
def make_cursor():
    return _make_cursor
