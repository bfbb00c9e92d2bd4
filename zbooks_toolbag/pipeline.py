"""
Typed aggregation pipeline stages.

Each stage and expression renders itself to the document MongoDB expects,
so a pipeline is built as a list of objects instead of nested dicts:

    render([
        Group(FieldRef("genre"), {"bookCount": Count()}),
        Sort([("bookCount", DESCENDING)]),
        Limit(1),
    ])
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

from pymongo import ASCENDING, DESCENDING


def render_expression(value: Any) -> Any:
    """Render expressions, accumulators and nested dicts/lists into BSON-ready values."""
    if isinstance(value, (Expression, Accumulator)):
        return value.to_bson()
    if isinstance(value, Mapping):
        return {key: render_expression(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [render_expression(item) for item in value]
    return value


# ---------- Expressions ----------

class Expression:
    def to_bson(self) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class FieldRef(Expression):
    name: str

    def to_bson(self) -> str:
        return f"${self.name}"


@dataclass(frozen=True)
class Round(Expression):
    value: Any
    places: int = 0

    def to_bson(self) -> Dict[str, Any]:
        return {"$round": [render_expression(self.value), self.places]}


@dataclass(frozen=True)
class Subtract(Expression):
    left: Any
    right: Any

    def to_bson(self) -> Dict[str, Any]:
        return {"$subtract": [render_expression(self.left), render_expression(self.right)]}


@dataclass(frozen=True)
class Mod(Expression):
    value: Any
    divisor: Any

    def to_bson(self) -> Dict[str, Any]:
        return {"$mod": [render_expression(self.value), render_expression(self.divisor)]}


# ---------- Accumulators ----------

class Accumulator:
    def to_bson(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class Avg(Accumulator):
    value: Any

    def to_bson(self) -> Dict[str, Any]:
        return {"$avg": render_expression(self.value)}


@dataclass(frozen=True)
class Count(Accumulator):
    def to_bson(self) -> Dict[str, Any]:
        return {"$sum": 1}


@dataclass(frozen=True)
class Push(Accumulator):
    value: Any

    def to_bson(self) -> Dict[str, Any]:
        return {"$push": render_expression(self.value)}


# ---------- Stages ----------

class Stage:
    def to_stage(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class Match(Stage):
    query: Dict[str, Any]

    def to_stage(self) -> Dict[str, Any]:
        return {"$match": dict(self.query)}


@dataclass(frozen=True)
class Group(Stage):
    key: Any
    accumulators: Dict[str, Accumulator] = field(default_factory=dict)

    def __post_init__(self):
        if "_id" in self.accumulators:
            raise ValueError("Group key is given separately; '_id' cannot be an accumulator")

    def to_stage(self) -> Dict[str, Any]:
        group: Dict[str, Any] = {"_id": render_expression(self.key)}
        for name, accumulator in self.accumulators.items():
            group[name] = accumulator.to_bson()
        return {"$group": group}


SortKeys = Sequence[Tuple[str, int]]


@dataclass(frozen=True)
class Sort(Stage):
    keys: SortKeys

    def __post_init__(self):
        if not self.keys:
            raise ValueError("Sort needs at least one key")
        for name, direction in self.keys:
            if direction not in (ASCENDING, DESCENDING):
                raise ValueError(f"Sort direction for '{name}' must be 1 or -1, got {direction!r}")

    def to_stage(self) -> Dict[str, Any]:
        return {"$sort": {name: direction for name, direction in self.keys}}


@dataclass(frozen=True)
class Project(Stage):
    fields: Dict[str, Any]

    def to_stage(self) -> Dict[str, Any]:
        return {"$project": render_expression(self.fields)}


@dataclass(frozen=True)
class AddFields(Stage):
    fields: Dict[str, Any]

    def to_stage(self) -> Dict[str, Any]:
        return {"$addFields": render_expression(self.fields)}


@dataclass(frozen=True)
class Limit(Stage):
    count: int

    def __post_init__(self):
        if self.count <= 0:
            raise ValueError(f"Limit must be positive, got {self.count}")

    def to_stage(self) -> Dict[str, Any]:
        return {"$limit": self.count}


Pipeline = Sequence[Union[Stage, Dict[str, Any]]]


def render(stages: Pipeline) -> List[Dict[str, Any]]:
    """Render stages in order. Raw stage dicts pass through untouched."""
    rendered = []
    for stage in stages:
        if isinstance(stage, Stage):
            rendered.append(stage.to_stage())
        elif isinstance(stage, dict):
            rendered.append(stage)
        else:
            raise TypeError(f"Not a pipeline stage: {stage!r}")
    return rendered


# ---------- Catalog pipelines ----------

def average_price_by_genre_pipeline() -> List[Stage]:
    return [
        Group(FieldRef("genre"), {
            "averagePrice": Avg(FieldRef("price")),
            "bookCount": Count(),
        }),
        Sort([("averagePrice", DESCENDING)]),
        Project({
            "genre": FieldRef("_id"),
            "averagePrice": Round(FieldRef("averagePrice"), 2),
            "bookCount": 1,
            "_id": 0,
        }),
    ]


def top_author_pipeline() -> List[Stage]:
    return [
        Group(FieldRef("author"), {
            "bookCount": Count(),
            "books": Push(FieldRef("title")),
        }),
        # _id is the author name; it breaks count ties deterministically
        Sort([("bookCount", DESCENDING), ("_id", ASCENDING)]),
        Limit(1),
        Project({
            "author": FieldRef("_id"),
            "bookCount": 1,
            "books": 1,
            "_id": 0,
        }),
    ]


def books_by_decade_pipeline() -> List[Stage]:
    year = FieldRef("published_year")
    return [
        AddFields({"decade": Subtract(year, Mod(year, 10))}),
        Group(FieldRef("decade"), {
            "count": Count(),
            "books": Push({"title": FieldRef("title"), "year": year}),
        }),
        Sort([("_id", ASCENDING)]),
        Project({
            "decade": FieldRef("_id"),
            "count": 1,
            "books": 1,
            "_id": 0,
        }),
    ]
