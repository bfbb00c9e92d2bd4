# zbooks_toolbag/zbooks.py
import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo.results import DeleteResult, InsertManyResult, UpdateResult

from zbooks_toolbag import zconstants
from zbooks_toolbag.data_processing import DataProcessing
from zbooks_toolbag.models import (
    Book,
    BookProjection,
    DecadeBucket,
    ExplainStats,
    GenrePriceStats,
    TopAuthor,
)
from zbooks_toolbag.pipeline import (
    Pipeline,
    average_price_by_genre_pipeline,
    books_by_decade_pipeline,
    render,
    top_author_pipeline,
)
from zbooks_toolbag.safe_result import SafeResult

logger = logging.getLogger(__name__)

JsonDict = Dict[str, Any]
BookLike = Union[Book, JsonDict]
IndexKeys = Sequence[Tuple[str, int]]


class ZBooks:
    """
    Async repository over the books collection.

    Every method returns a SafeResult. Driver errors are logged and come back
    as ``SafeResult.fail``; call ``unwrap()`` to turn them into exceptions.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection: Optional[str] = None):
        self.db = db
        self.collection_name = collection or os.getenv(
            zconstants.BOOKS_COLLECTION_ENV, zconstants.DEFAULT_BOOKS_COLLECTION
        )

    @property
    def collection(self):
        return self.db[self.collection_name]

    # ---------- Result helpers ----------
    @staticmethod
    def ok(data: Any = None) -> SafeResult:
        return SafeResult.ok(data)

    @staticmethod
    def fail(operation: str, exc: Exception) -> SafeResult:
        logger.error(f"MongoDB error in {operation}: {exc}")
        return SafeResult.fail(str(exc), exc=exc)

    @staticmethod
    def _parse_mongo_result(res: Any) -> Dict[str, Any]:
        """Converts raw PyMongo result objects into clean, serializable dicts."""
        if isinstance(res, InsertManyResult):
            return {"inserted_ids": res.inserted_ids, "acknowledged": res.acknowledged}
        if isinstance(res, UpdateResult):
            return {
                "matched_count": res.matched_count,
                "modified_count": res.modified_count,
                "upserted_id": res.upserted_id,
                "acknowledged": res.acknowledged,
            }
        if isinstance(res, DeleteResult):
            return {"deleted_count": res.deleted_count, "acknowledged": res.acknowledged}
        return {"raw_result": str(res)}

    @staticmethod
    def _to_model(model: Type[BaseModel], doc: JsonDict) -> BaseModel:
        return model.model_validate(DataProcessing.stringify_id(doc))

    @staticmethod
    def _to_document(book: BookLike) -> JsonDict:
        if isinstance(book, Book):
            return book.to_document()
        return dict(book)

    # ---------- Reads ----------
    async def find_books(
        self,
        query: JsonDict,
        *,
        model: Type[BaseModel] = Book,
        sort: Optional[List[Tuple[str, int]]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> SafeResult:
        """
        Find every matching book and validate it as ``model``.

        Projection models (subclasses of BookProjection) restrict the returned
        fields; a Book model returns whole documents.
        """
        projection = model.projection() if issubclass(model, BookProjection) else None
        logger.debug("find %s filter=%s projection=%s sort=%s skip=%s limit=%s",
                     self.collection_name, query, projection, sort, skip, limit)
        try:
            cursor = self.collection.find(query, projection)
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=None)
            return self.ok([self._to_model(model, d) for d in docs])
        except Exception as e:
            return self.fail("find_books", e)

    async def find_book(self, query: JsonDict) -> SafeResult:
        logger.debug("find_one %s filter=%s", self.collection_name, query)
        try:
            doc = await self.collection.find_one(query)
            return self.ok(self._to_model(Book, doc) if doc else None)
        except Exception as e:
            return self.fail("find_book", e)

    async def count_books(self, query: Optional[JsonDict] = None) -> SafeResult:
        try:
            count = await self.collection.count_documents(query or {})
            return self.ok(count)
        except Exception as e:
            return self.fail("count_books", e)

    # ---------- Writes ----------
    async def insert_books(self, books: Sequence[BookLike]) -> SafeResult:
        if not books:
            return self.ok({"inserted_ids": [], "acknowledged": True})
        try:
            res = await self.collection.insert_many([self._to_document(b) for b in books])
            return self.ok(self._parse_mongo_result(res))
        except Exception as e:
            return self.fail("insert_books", e)

    async def update_book(self, query: JsonDict, update: JsonDict) -> SafeResult:
        # Auto-wrap non-operator updates
        if not any(isinstance(k, str) and k.startswith("$") for k in update.keys()):
            update = {"$set": update}
        logger.debug("update_one %s filter=%s update=%s", self.collection_name, query, update)
        try:
            res = await self.collection.update_one(query, update)
            return self.ok(self._parse_mongo_result(res))
        except Exception as e:
            return self.fail("update_book", e)

    async def delete_book(self, query: JsonDict) -> SafeResult:
        logger.debug("delete_one %s filter=%s", self.collection_name, query)
        try:
            res = await self.collection.delete_one(query)
            return self.ok(self._parse_mongo_result(res))
        except Exception as e:
            return self.fail("delete_book", e)

    async def delete_all_books(self) -> SafeResult:
        try:
            res = await self.collection.delete_many({})
            return self.ok(self._parse_mongo_result(res))
        except Exception as e:
            return self.fail("delete_all_books", e)

    # ---------- Aggregation ----------
    async def aggregate(self, stages: Pipeline, model: Type[BaseModel]) -> SafeResult:
        try:
            pipeline = render(stages)
            logger.debug("aggregate %s pipeline=%s", self.collection_name, pipeline)
            cursor = self.collection.aggregate(pipeline)
            docs = await cursor.to_list(length=None)
            return self.ok([self._to_model(model, d) for d in docs])
        except Exception as e:
            return self.fail("aggregate", e)

    async def average_price_by_genre(self) -> SafeResult:
        return await self.aggregate(average_price_by_genre_pipeline(), GenrePriceStats)

    async def top_author(self) -> SafeResult:
        return await self.aggregate(top_author_pipeline(), TopAuthor)

    async def books_by_decade(self) -> SafeResult:
        return await self.aggregate(books_by_decade_pipeline(), DecadeBucket)

    # ---------- Indexes & diagnostics ----------
    async def create_index(self, keys: IndexKeys) -> SafeResult:
        try:
            name = await self.collection.create_index(list(keys))
            logger.info("Index '%s' ready on '%s'.", name, self.collection_name)
            return self.ok(name)
        except Exception as e:
            return self.fail("create_index", e)

    async def explain_find(self, query: JsonDict) -> SafeResult:
        """Explain a find over ``query`` with executionStats verbosity."""
        command = {
            "explain": {"find": self.collection_name, "filter": query},
            "verbosity": "executionStats",
        }
        try:
            explain = await self.db.command(command)
            return self.ok(ExplainStats.from_explain(explain))
        except Exception as e:
            return self.fail("explain_find", e)
