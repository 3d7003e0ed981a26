"""Base Model Module."""

import json
from datetime import datetime
from typing import Any, Literal

from sqlalchemy import inspect
from sqlalchemy.orm import DeclarativeBase


def generic_serialize(obj: Any) -> Any:
    """Convert values json.dumps cannot handle natively.

    Args:
        obj: The object to convert.

    Returns:
        A JSON-serializable representation of the object.
    """
    if obj is None:
        return None
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


class Base(DeclarativeBase):
    """Base class for all database models."""

    def model_dump(
        self,
        *,
        mode: Literal["json", "python"] | str = "python",
        include: set[str] | None = None,
        exclude: set[str] | None = None,
        exclude_none: bool = False,
    ) -> dict[str, Any]:
        """Dump the mapped column values to a dictionary.

        Imitates the behavior of Pydantic's model_dump method so rows can be fed
        straight into ``Model.model_validate``.
        """
        result: dict[str, Any] = {}
        for attr in inspect(self.__class__).column_attrs:
            key = attr.key
            if include and key not in include:
                continue
            if exclude and key in exclude:
                continue
            value = getattr(self, key)
            if exclude_none and value is None:
                continue
            result[key] = value

        if mode == "python":
            return result
        if mode == "json":
            return json.loads(json.dumps(result, default=generic_serialize))
        raise ValueError(f"Unsupported mode: {mode}")
