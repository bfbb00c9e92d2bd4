"""
Data Processing Module
=======================

Static helpers for turning MongoDB documents and the package's pydantic
models into plain JSON-friendly structures, and for printing them the way
the query runner shows results on the console.
"""
import json
from datetime import datetime
from typing import Any, Dict

from bson import ObjectId
from pydantic import BaseModel


class DataProcessing:
    @staticmethod
    def stringify_id(doc: Dict[str, Any]) -> Dict[str, Any]:
        """Return a shallow copy with _id coerced to str for JSON-friendliness."""
        if not isinstance(doc, dict):
            return doc
        if "_id" in doc and isinstance(doc["_id"], ObjectId):
            newd = dict(doc)
            newd["_id"] = str(newd["_id"])
            return newd
        return doc

    @staticmethod
    def to_jsonable(obj: Any) -> Any:
        """
        Recursively convert models, ObjectIds and datetimes into JSON types.

        Models are dumped by alias with unset optional fields left out, so the
        output keys match the stored document keys (``_id``, ``averagePrice``...).
        """
        if isinstance(obj, (int, float, bool, str, type(None))):
            return obj
        if isinstance(obj, BaseModel):
            return DataProcessing.to_jsonable(obj.model_dump(by_alias=True, exclude_none=True))
        if isinstance(obj, dict):
            return {str(key): DataProcessing.to_jsonable(value) for key, value in obj.items()}
        if isinstance(obj, (list, tuple, set)):
            return [DataProcessing.to_jsonable(item) for item in obj]
        if isinstance(obj, ObjectId):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return str(obj)

    @staticmethod
    def pretty_json(obj: Any, indent: int = 2) -> str:
        return json.dumps(DataProcessing.to_jsonable(obj), indent=indent, ensure_ascii=False)
