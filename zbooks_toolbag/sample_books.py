# zbooks_toolbag/sample_books.py
import asyncio
import logging
import sys
from typing import Optional, Sequence

from zbooks_toolbag.models import Book
from zbooks_toolbag.query_runner import configure_logging
from zbooks_toolbag.zbooks import ZBooks
from zbooks_toolbag.zconnection import ZConnection

logger = logging.getLogger(__name__)

SAMPLE_BOOKS = [
    Book(title="To Kill a Mockingbird", author="Harper Lee", genre="Fiction",
         published_year=1960, price=12.99, in_stock=True),
    Book(title="1984", author="George Orwell", genre="Dystopian",
         published_year=1949, price=10.99, in_stock=True),
    Book(title="The Great Gatsby", author="F. Scott Fitzgerald", genre="Fiction",
         published_year=1925, price=9.99, in_stock=True),
    Book(title="Brave New World", author="Aldous Huxley", genre="Dystopian",
         published_year=1932, price=11.50, in_stock=False),
    Book(title="The Hobbit", author="J.R.R. Tolkien", genre="Fantasy",
         published_year=1937, price=14.99, in_stock=True),
    Book(title="The Catcher in the Rye", author="J.D. Salinger", genre="Fiction",
         published_year=1951, price=8.99, in_stock=False),
    Book(title="Pride and Prejudice", author="Jane Austen", genre="Romance",
         published_year=1813, price=7.99, in_stock=True),
    Book(title="The Lord of the Rings", author="J.R.R. Tolkien", genre="Fantasy",
         published_year=1954, price=19.99, in_stock=True),
    Book(title="Animal Farm", author="George Orwell", genre="Political Satire",
         published_year=1945, price=8.50, in_stock=False),
    Book(title="The Alchemist", author="Paulo Coelho", genre="Fiction",
         published_year=1988, price=10.99, in_stock=True),
    Book(title="Harry Potter and the Philosopher's Stone", author="J.K. Rowling", genre="Fantasy",
         published_year=1997, price=12.50, in_stock=True),
    Book(title="The Silmarillion", author="J.R.R. Tolkien", genre="Fantasy",
         published_year=1977, price=16.99, in_stock=False),
    Book(title="The Road", author="Cormac McCarthy", genre="Post-apocalyptic",
         published_year=2006, price=13.99, in_stock=True),
    Book(title="The Night Circus", author="Erin Morgenstern", genre="Fantasy",
         published_year=2011, price=15.99, in_stock=True),
    Book(title="The Martian", author="Andy Weir", genre="Science Fiction",
         published_year=2014, price=14.50, in_stock=True),
    Book(title="Circe", author="Madeline Miller", genre="Fantasy",
         published_year=2018, price=17.99, in_stock=False),
]


async def seed_books(books: ZBooks, sample: Optional[Sequence[Book]] = None, *, drop: bool = False) -> int:
    """
    Insert the sample catalog and return how many documents went in.

    With ``drop=True`` the collection is emptied first, so re-seeding gives
    the query runner a known starting point.
    """
    sample = SAMPLE_BOOKS if sample is None else sample
    if drop:
        removed = (await books.delete_all_books()).unwrap()
        logger.info("Removed %s existing book(s) from '%s'.", removed["deleted_count"], books.collection_name)
    inserted = (await books.insert_books(sample)).unwrap()
    count = len(inserted["inserted_ids"])
    logger.info("Inserted %s book(s) into '%s'.", count, books.collection_name)
    return count


async def _seed() -> int:
    async with ZConnection() as connection:
        return await seed_books(ZBooks(connection.db), drop=True)


def main() -> int:
    configure_logging()
    try:
        count = asyncio.run(_seed())
    except Exception:
        logger.exception("Error seeding books")
        return 1
    print(f"Seeded {count} book(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
