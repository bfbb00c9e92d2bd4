# zbooks_toolbag/query_runner.py
import asyncio
import logging
import os
import sys
from typing import Any, Optional, TextIO

from pymongo import ASCENDING, DESCENDING

from zbooks_toolbag import zconstants
from zbooks_toolbag.data_processing import DataProcessing
from zbooks_toolbag.models import BookByline, BookPrice, BookSummary
from zbooks_toolbag.zbooks import ZBooks
from zbooks_toolbag.zconnection import ZConnection

logger = logging.getLogger(__name__)

PAGE_SIZE = 5
UPDATED_PRICE = 99.99


class QueryRunner:
    """
    Runs the fixed books query catalog, in order, and prints every result.

    Any failure aborts the remaining steps. The connection is closed on
    both the success path and the failure path; failures are re-raised.
    """

    def __init__(self, connection: ZConnection, collection: Optional[str] = None, out: Optional[TextIO] = None):
        self.connection = connection
        self.collection = collection
        self.out = out or sys.stdout
        self.books: Optional[ZBooks] = None

    def _print(self, *parts: Any) -> None:
        print(*parts, file=self.out)

    def _print_json(self, data: Any) -> None:
        self._print(DataProcessing.pretty_json(data))

    async def run(self) -> None:
        try:
            db = await self.connection.connect()
            self.books = ZBooks(db, self.collection)
            await self.basic_queries()
            await self.advanced_queries()
            await self.aggregations()
            await self.indexing()
        except Exception:
            logger.exception("Error running queries")
            if self.connection.close():
                self._print("\nConnection closed due to error")
            raise

        if self.connection.close():
            self._print("\nConnection closed")

    # ---------- Task 2 ----------
    async def basic_queries(self) -> None:
        self._print("\nTASK 2: BASIC QUERIES")

        self._print("1. Books in Fantasy genre:")
        self._print_json((await self.books.find_books({"genre": "Fantasy"})).unwrap())

        self._print("\n2. Books published after 2000:")
        self._print_json((await self.books.find_books({"published_year": {"$gt": 2000}})).unwrap())

        self._print("\n3. Books by J.R.R. Tolkien:")
        self._print_json((await self.books.find_books({"author": "J.R.R. Tolkien"})).unwrap())

        self._print("\n4. Updating price of 'The Great Gatsby':")
        gatsby = {"title": "The Great Gatsby"}
        updated = (await self.books.update_book(gatsby, {"$set": {"price": UPDATED_PRICE}})).unwrap()
        self._print(f"Modified {updated['modified_count']} document(s)")
        book = (await self.books.find_book(gatsby)).unwrap()
        self._print("Updated book:", DataProcessing.pretty_json(book))

        self._print("\n5. Deleting 'Pride and Prejudice':")
        deleted = (await self.books.delete_book({"title": "Pride and Prejudice"})).unwrap()
        self._print(f"Deleted {deleted['deleted_count']} document(s)")
        remaining = (await self.books.count_books()).unwrap()
        self._print(f"Remaining books: {remaining}")

    # ---------- Task 3 ----------
    async def advanced_queries(self) -> None:
        self._print("\nTASK 3: ADVANCED QUERIES")

        self._print("1. Books in stock AND published after 2010:")
        in_stock_recent = {"in_stock": True, "published_year": {"$gt": 2010}}
        self._print_json((await self.books.find_books(in_stock_recent)).unwrap())

        self._print("\n2. All books (title, author, price only):")
        self._print_json((await self.books.find_books({}, model=BookSummary)).unwrap())

        self._print("\n3a. Books sorted by price (ascending):")
        by_price = await self.books.find_books({}, model=BookPrice, sort=[("price", ASCENDING)])
        self._print_json(by_price.unwrap())

        self._print("\n3b. Books sorted by price (descending):")
        by_price = await self.books.find_books({}, model=BookPrice, sort=[("price", DESCENDING)])
        self._print_json(by_price.unwrap())

        self._print(f"\n4. Pagination ({PAGE_SIZE} books per page):")
        for page in (1, 2):
            self._print(f"\nPage {page}:")
            self._print_json((await self.page(page)).unwrap())

    async def page(self, number: int, size: int = PAGE_SIZE):
        # Natural order is not guaranteed; both pages share an explicit _id sort
        return await self.books.find_books(
            {},
            model=BookByline,
            sort=[("_id", ASCENDING)],
            skip=(number - 1) * size,
            limit=size,
        )

    # ---------- Task 4 ----------
    async def aggregations(self) -> None:
        self._print("\nTASK 4: AGGREGATION PIPELINE")

        self._print("1. Average price by genre:")
        self._print_json((await self.books.average_price_by_genre()).unwrap())

        self._print("\n2. Author with most books:")
        self._print_json((await self.books.top_author()).unwrap())

        self._print("\n3. Books grouped by publication decade:")
        self._print_json((await self.books.books_by_decade()).unwrap())

    # ---------- Task 5 ----------
    async def indexing(self) -> None:
        self._print("\nTASK 5: INDEXING")

        self._print("1. Creating index on 'title':")
        (await self.books.create_index([("title", ASCENDING)])).unwrap()
        self._print("Index created on title field")

        self._print("\n2. Creating compound index on 'author' and 'published_year':")
        (await self.books.create_index([("author", ASCENDING), ("published_year", DESCENDING)])).unwrap()
        self._print("Compound index created")

        self._print("\n3. Query performance with explain:")
        stats = (await self.books.explain_find({"title": "The Hobbit"})).unwrap()
        self._print("Execution stats:")
        self._print(f"- Execution time: {stats.execution_time_millis}ms")
        self._print(f"- Documents examined: {stats.total_docs_examined}")
        self._print(f"- Documents returned: {stats.n_returned}")


def configure_logging() -> None:
    level = os.getenv(zconstants.LOG_LEVEL_ENV, zconstants.DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")


def main() -> int:
    configure_logging()
    try:
        runner = QueryRunner(ZConnection())
    except ValueError:
        logger.exception("Invalid MongoDB configuration")
        return 1
    try:
        asyncio.run(runner.run())
    except Exception:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
