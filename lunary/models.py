"""Shared model base classes and time helpers."""

import time
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys.

    Persisted documents and engine payloads use camelCase (``filePath``,
    ``lastIndexed``); Python code uses the snake_case field names. Both are
    accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """JSON-compatible dict using the camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)
