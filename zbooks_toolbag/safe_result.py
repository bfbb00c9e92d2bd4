from typing import Any, Optional

from bson.objectid import ObjectId

from zbooks_toolbag.errors import BooksOperationError


class SafeResult:
    """
    Wraps every books repository result in a predictable, serializable object.
    Provides:
      - .success: True/False
      - .data: main result (model, list of models, dict or primitive)
      - .error: error string or None
      - .unwrap(): data on success, BooksOperationError on failure
    """

    def __init__(
            self,
            data: Any = None,
            *,
            success: Optional[bool] = None,
            error: Optional[str] = None,
            original_exc: Optional[BaseException] = None,
    ):
        self.success = success if success is not None else (error is None)
        self.error = error
        self.data = self._convert(data)
        self.original_exc = original_exc

    @staticmethod
    def _convert(obj):
        # ObjectIds become strings so results print and serialize cleanly
        if isinstance(obj, ObjectId):
            return str(obj)
        if isinstance(obj, dict):
            return {k: SafeResult._convert(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [SafeResult._convert(x) for x in obj]
        return obj

    @classmethod
    def ok(cls, data: Any = None):
        return cls(data=data, success=True, error=None)

    @classmethod
    def fail(cls, error: str, data: Any = None, exc: Optional[BaseException] = None):
        return cls(data=data, success=False, error=error, original_exc=exc)

    def __repr__(self):
        return f"SafeResult(success={self.success}, error={self.error!r}, data={str(self.data)[:300]})"

    def unwrap(self):
        """
        Return the data of a successful result.

        Raises:
            BooksOperationError: If the result failed. The
                driver exception, when known, is chained as the cause.
        """
        if self.success:
            return self.data
        raise BooksOperationError(self.error) from self.original_exc
