# zbooks_toolbag/models.py
from typing import Annotated, Any, Dict, List, Optional

from bson.decimal128 import Decimal128
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _decimal128_to_float(value: Any) -> Any:
    if isinstance(value, Decimal128):
        return float(value.to_decimal())
    return value


# Prices may be stored as BSON Decimal128
Price = Annotated[float, BeforeValidator(_decimal128_to_float)]


class Book(BaseModel):
    """A document of the books collection. Unknown stored fields are kept as extras."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    # Opaque: ObjectIds arrive stringified, any other _id type is kept as stored
    id: Any = Field(default=None, alias="_id")
    title: str
    author: str
    published_year: int
    genre: str
    price: Price
    in_stock: Optional[bool] = None

    def to_document(self) -> Dict[str, Any]:
        """Dict ready for insert_one/insert_many; an unset _id is left for the server."""
        return self.model_dump(by_alias=True, exclude_none=True)


class BookProjection(BaseModel):
    """
    Base for the field-subset views of a Book.

    Subclasses list the fields they read; ``projection()`` turns that list
    into a MongoDB projection that always drops ``_id``.
    """

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def projection(cls) -> Dict[str, int]:
        fields = {(info.alias or name): 1 for name, info in cls.model_fields.items()}
        fields["_id"] = 0
        return fields


class BookSummary(BookProjection):
    title: str
    author: str
    price: Price


class BookPrice(BookProjection):
    title: str
    price: Price


class BookByline(BookProjection):
    title: str
    author: str


# ---------- Aggregation results ----------

class GenrePriceStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    genre: Optional[str] = None
    average_price: Optional[Price] = Field(default=None, alias="averagePrice")
    book_count: int = Field(alias="bookCount")


class TopAuthor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    author: Optional[str] = None
    book_count: int = Field(alias="bookCount")
    books: List[str] = Field(default_factory=list)


class DecadeTitle(BaseModel):
    title: str
    year: int


class DecadeBucket(BaseModel):
    decade: Optional[int] = None
    count: int
    books: List[DecadeTitle] = Field(default_factory=list)


# ---------- Diagnostics ----------

class ExplainStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    execution_time_millis: int = Field(alias="executionTimeMillis")
    total_docs_examined: int = Field(alias="totalDocsExamined")
    n_returned: int = Field(alias="nReturned")

    @classmethod
    def from_explain(cls, explain: Dict[str, Any]) -> "ExplainStats":
        """Read the executionStats section of an explain command reply."""
        stats = explain.get("executionStats")
        if not isinstance(stats, dict):
            raise ValueError("Explain output has no executionStats section")
        return cls.model_validate(stats)
