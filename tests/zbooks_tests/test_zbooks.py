from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from bson.decimal128 import Decimal128
from pymongo.errors import OperationFailure, PyMongoError
from pymongo.results import DeleteResult, InsertManyResult, UpdateResult

from zbooks_toolbag.data_processing import DataProcessing
from zbooks_toolbag.models import Book, BookPrice, DecadeBucket, GenrePriceStats, TopAuthor
from zbooks_toolbag.zbooks import ZBooks


def book_doc(**overrides):
    doc = {
        "_id": ObjectId(),
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "published_year": 1937,
        "genre": "Fantasy",
        "price": 14.99,
        "in_stock": True,
    }
    doc.update(overrides)
    return doc


@pytest.mark.asyncio
async def test_find_books_returns_books_with_string_ids(zbooks, mock_collection, make_cursor):
    doc = book_doc()
    mock_collection.find.return_value = make_cursor([doc])

    result = await zbooks.find_books({"genre": "Fantasy"})

    mock_collection.find.assert_called_once_with({"genre": "Fantasy"}, None)
    assert result.success
    [book] = result.data
    assert isinstance(book, Book)
    assert book.id == str(doc["_id"])
    assert book.genre == "Fantasy"


@pytest.mark.asyncio
async def test_find_books_with_projection_sort_and_paging(zbooks, mock_collection, make_cursor):
    cursor = make_cursor([{"title": "1984", "price": 10.99}])
    mock_collection.find.return_value = cursor

    result = await zbooks.find_books({}, model=BookPrice, sort=[("price", 1)], skip=5, limit=5)

    mock_collection.find.assert_called_once_with({}, {"title": 1, "price": 1, "_id": 0})
    cursor.sort.assert_called_once_with([("price", 1)])
    cursor.skip.assert_called_once_with(5)
    cursor.limit.assert_called_once_with(5)
    cursor.to_list.assert_awaited_once_with(length=None)
    assert result.data == [BookPrice(title="1984", price=10.99)]


@pytest.mark.asyncio
async def test_find_books_without_paging_does_not_touch_cursor(zbooks, mock_collection, make_cursor):
    cursor = make_cursor([])
    mock_collection.find.return_value = cursor
    await zbooks.find_books({})
    cursor.sort.assert_not_called()
    cursor.skip.assert_not_called()
    cursor.limit.assert_not_called()


@pytest.mark.asyncio
async def test_find_books_driver_error_is_logged_and_returned(zbooks, mock_collection, caplog, make_cursor):
    cursor = make_cursor([])
    cursor.to_list.side_effect = PyMongoError("Database unreachable")
    mock_collection.find.return_value = cursor

    with caplog.at_level("ERROR"):
        result = await zbooks.find_books({})

    assert not result.success
    assert "Database unreachable" in result.error
    assert "MongoDB error in find_books: Database unreachable" in caplog.text


@pytest.mark.asyncio
async def test_find_book_found_and_missing(zbooks, mock_collection):
    mock_collection.find_one = AsyncMock(return_value=book_doc(title="The Great Gatsby", price=99.99))
    book = (await zbooks.find_book({"title": "The Great Gatsby"})).unwrap()
    assert book.price == 99.99

    mock_collection.find_one = AsyncMock(return_value=None)
    assert (await zbooks.find_book({"title": "Nope"})).unwrap() is None


@pytest.mark.asyncio
async def test_update_book_wraps_plain_fields_in_set(zbooks, mock_collection):
    mock_collection.update_one = AsyncMock(return_value=UpdateResult(
        {"n": 1, "nModified": 1}, acknowledged=True))

    result = await zbooks.update_book({"title": "The Great Gatsby"}, {"price": 99.99})

    mock_collection.update_one.assert_awaited_once_with(
        {"title": "The Great Gatsby"}, {"$set": {"price": 99.99}})
    assert result.data["matched_count"] == 1
    assert result.data["modified_count"] == 1
    assert result.data["upserted_id"] is None


@pytest.mark.asyncio
async def test_update_book_keeps_operator_updates(zbooks, mock_collection):
    mock_collection.update_one = AsyncMock(return_value=UpdateResult({"n": 0, "nModified": 0}, True))
    await zbooks.update_book({"title": "x"}, {"$inc": {"price": 1}})
    mock_collection.update_one.assert_awaited_once_with({"title": "x"}, {"$inc": {"price": 1}})


@pytest.mark.asyncio
async def test_delete_book_reports_count(zbooks, mock_collection):
    mock_collection.delete_one = AsyncMock(return_value=DeleteResult({"n": 1}, acknowledged=True))
    result = await zbooks.delete_book({"title": "Pride and Prejudice"})
    assert result.data == {"deleted_count": 1, "acknowledged": True}


@pytest.mark.asyncio
async def test_count_books_defaults_to_everything(zbooks, mock_collection):
    mock_collection.count_documents = AsyncMock(return_value=15)
    assert (await zbooks.count_books()).unwrap() == 15
    mock_collection.count_documents.assert_awaited_once_with({})


@pytest.mark.asyncio
async def test_insert_books_accepts_models_and_dicts(zbooks, mock_collection):
    ids = [ObjectId(), ObjectId()]
    mock_collection.insert_many = AsyncMock(return_value=InsertManyResult(ids, acknowledged=True))
    model = Book(title="Circe", author="Madeline Miller", published_year=2018, genre="Fantasy", price=17.99)

    result = await zbooks.insert_books([model, {"title": "Raw"}])

    docs = mock_collection.insert_many.await_args.args[0]
    assert docs[0] == model.to_document()
    assert docs[1] == {"title": "Raw"}
    assert result.data["inserted_ids"] == [str(i) for i in ids]


@pytest.mark.asyncio
async def test_insert_books_empty_is_noop(zbooks, mock_collection):
    mock_collection.insert_many = AsyncMock()
    result = await zbooks.insert_books([])
    assert result.data == {"inserted_ids": [], "acknowledged": True}
    mock_collection.insert_many.assert_not_awaited()


@pytest.mark.asyncio
async def test_average_price_by_genre_validates_rows(zbooks, mock_collection, make_cursor):
    mock_collection.aggregate.return_value = make_cursor([
        {"genre": "Fantasy", "averagePrice": 20.0, "bookCount": 3},
        {"genre": "Fiction", "averagePrice": 10.5, "bookCount": 2},
    ])

    rows = (await zbooks.average_price_by_genre()).unwrap()

    pipeline = mock_collection.aggregate.call_args.args[0]
    assert pipeline[0]["$group"]["_id"] == "$genre"
    assert rows == [
        GenrePriceStats(genre="Fantasy", average_price=20.0, book_count=3),
        GenrePriceStats(genre="Fiction", average_price=10.5, book_count=2),
    ]


@pytest.mark.asyncio
async def test_top_author_and_decades(zbooks, mock_collection, make_cursor):
    mock_collection.aggregate.return_value = make_cursor([
        {"author": "J.R.R. Tolkien", "bookCount": 3, "books": ["The Hobbit", "The Silmarillion", "LOTR"]},
    ])
    [top] = (await zbooks.top_author()).unwrap()
    assert isinstance(top, TopAuthor)
    assert top.book_count == 3

    mock_collection.aggregate.return_value = make_cursor([
        {"decade": 1990, "count": 1, "books": [{"title": "Harry Potter", "year": 1997}]},
    ])
    [bucket] = (await zbooks.books_by_decade()).unwrap()
    assert isinstance(bucket, DecadeBucket)
    assert bucket.decade == 1990


@pytest.mark.asyncio
async def test_aggregate_operation_failure_becomes_failed_result(zbooks, mock_collection):
    mock_collection.aggregate.side_effect = OperationFailure("Unrecognized pipeline stage")
    result = await zbooks.top_author()
    assert not result.success
    assert "Unrecognized pipeline stage" in result.error


@pytest.mark.asyncio
async def test_create_index_passes_key_pairs(zbooks, mock_collection, caplog):
    mock_collection.create_index = AsyncMock(return_value="author_1_published_year_-1")
    with caplog.at_level("INFO"):
        result = await zbooks.create_index([("author", 1), ("published_year", -1)])
    mock_collection.create_index.assert_awaited_once_with([("author", 1), ("published_year", -1)])
    assert result.data == "author_1_published_year_-1"
    assert "author_1_published_year_-1" in caplog.text


@pytest.mark.asyncio
async def test_create_index_error(zbooks, mock_collection):
    mock_collection.create_index = AsyncMock(side_effect=PyMongoError("Index boom"))
    result = await zbooks.create_index([("title", 1)])
    assert result.error == "Index boom"


@pytest.mark.asyncio
async def test_explain_find_runs_execution_stats_command(zbooks, mock_db):
    mock_db.command.return_value = {
        "executionStats": {"executionTimeMillis": 0, "totalDocsExamined": 16, "nReturned": 1},
    }

    stats = (await zbooks.explain_find({"title": "The Hobbit"})).unwrap()

    mock_db.command.assert_awaited_once_with({
        "explain": {"find": "books", "filter": {"title": "The Hobbit"}},
        "verbosity": "executionStats",
    })
    assert stats.total_docs_examined == 16
    assert stats.n_returned == 1


@pytest.mark.asyncio
async def test_explain_without_stats_fails(zbooks, mock_db):
    mock_db.command.return_value = {"queryPlanner": {}}
    result = await zbooks.explain_find({"title": "The Hobbit"})
    assert not result.success
    assert "executionStats" in result.error


def test_collection_name_from_env(monkeypatch):
    monkeypatch.setenv("BOOKS_COLLECTION", "library_books")
    db = MagicMock()
    books = ZBooks(db)
    assert books.collection_name == "library_books"
    books.collection
    db.__getitem__.assert_called_with("library_books")


@pytest.mark.asyncio
async def test_find_books_keeps_non_objectid_ids_and_decimal_prices(zbooks, mock_collection, make_cursor):
    mock_collection.find.return_value = make_cursor([
        book_doc(_id=7, price=10),
        book_doc(_id="hobbit-1937", price=Decimal128("14.99")),
    ])

    result = await zbooks.find_books({"genre": "Fantasy"})

    assert result.success, result.error
    first, second = result.data
    assert first.id == 7
    assert second.id == "hobbit-1937"
    assert second.price == 14.99
    assert '"_id": 7' in DataProcessing.pretty_json(first)
