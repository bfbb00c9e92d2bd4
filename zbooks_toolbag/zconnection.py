# zbooks_toolbag/zconnection.py
import logging
import os
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError, PyMongoError

from zbooks_toolbag import zconstants
from zbooks_toolbag.errors import BooksConnectionError

logger = logging.getLogger(__name__)


class ZConnection:
    """
    A single MongoDB connection: open, hand out the database, close.

    There is no reconnect or retry. ``connect()`` pings the server so an
    unreachable endpoint or a bad URI fails right away with
    BooksConnectionError instead of on the first query.
    """

    def __init__(
        self,
        uri: Optional[str] = None,
        db_name: Optional[str] = None,
        *,
        server_selection_timeout_ms: Optional[int] = None,
        timeout_ms: Optional[int] = None,
    ):
        self.uri = uri or zconstants.get_mongo_uri()
        self.db_name = db_name or os.getenv(
            zconstants.MONGO_DATABASE_NAME_ENV, zconstants.DEFAULT_DATABASE_NAME
        )
        self.server_selection_timeout_ms = server_selection_timeout_ms or zconstants.get_int_env(
            zconstants.SERVER_SELECTION_TIMEOUT_ENV, zconstants.DEFAULT_SERVER_SELECTION_TIMEOUT_MS
        )
        self.timeout_ms = timeout_ms or zconstants.get_int_env(zconstants.TIMEOUT_ENV)
        self.client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None

    async def __aenter__(self) -> "ZConnection":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _client_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"serverSelectionTimeoutMS": self.server_selection_timeout_ms}
        if self.timeout_ms:
            options["timeoutMS"] = self.timeout_ms
        return options

    @property
    def is_open(self) -> bool:
        return self.client is not None and self._db is not None

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if not self.is_open:
            raise BooksConnectionError("MongoDB connection is not open.")
        return self._db

    async def connect(self) -> AsyncIOMotorDatabase:
        if self.is_open:
            return self._db

        client = None
        try:
            client = AsyncIOMotorClient(self.uri, **self._client_options())
            await client.admin.command("ping")
            # A database in the URI path takes precedence over MONGO_DATABASE_NAME
            db = client.get_default_database(default=self.db_name)
        except (ConfigurationError, ValueError, TypeError) as e:
            # The URI parser raises plain ValueError for bad ports and option values
            logger.error(f"Invalid MongoDB configuration: {e}")
            if client is not None:
                client.close()
            raise BooksConnectionError(f"Invalid MongoDB URI or options: {e}") from e
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            if client is not None:
                client.close()
            raise BooksConnectionError(f"Cannot reach MongoDB: {e}") from e

        self.client = client
        self._db = db
        logger.info("Connected to MongoDB (database '%s').", db.name)
        return db

    def close(self) -> bool:
        """Closes the client if it is open. Returns True when a close happened."""
        if not self.is_open:
            return False
        self.client.close()
        self.client = None
        self._db = None
        logger.info("MongoDB connection closed.")
        return True
