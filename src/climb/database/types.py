"""Custom SQLAlchemy column types for CLIMB."""

import json
import math

from typing import Any

from sqlalchemy import Text, TypeDecorator


class NumericJSON(TypeDecorator[Any]):
    """
    Text column holding a JSON list or mapping of numbers.

    Hourly conversion counts and survey channel counters are stored this
    way. Containers of the wrong kind, or holding non-numeric or non-finite
    values, are rejected on write. Keys are written with ensure_ascii=False so
    Japanese labels stay readable in the database file.
    """

    impl = Text
    cache_ok = True

    def __init__(self, container: type[list[Any]] | type[dict[str, Any]] = list):
        super().__init__()
        self.container = container

    def _check(self, value: Any) -> None:
        if not isinstance(value, self.container):
            raise ValueError(
                f"Expected a JSON {self.container.__name__}, got {type(value).__name__}"
            )
        numbers = value.values() if isinstance(value, dict) else value
        for number in numbers:
            if isinstance(number, bool) or not isinstance(number, int | float):
                raise ValueError(f"Non-numeric value {number!r} in numeric JSON column")
            if not math.isfinite(number):
                raise ValueError(f"Non-finite value {number!r} in numeric JSON column")

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        """
        Validate and serialize before storing.

        Raises:
            ValueError: If value is not a numeric container of the expected kind
        """
        if value is None:
            return None
        self._check(value)
        return json.dumps(value, ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Any) -> Any:
        """
        Deserialize after retrieval.

        Raises:
            ValueError: If stored value is not valid JSON
        """
        if value is None:
            return None

        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Stored value is not valid JSON: {e}. Value: {value[:100]}") from e
