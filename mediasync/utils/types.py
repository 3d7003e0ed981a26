"""Shared enumeration and typing helpers."""

from __future__ import annotations

from enum import StrEnum

__all__ = ["BaseStrEnum"]


class BaseStrEnum(StrEnum):
    """String enumeration with lenient lookup.

    Lookups ignore case and treat ``-`` and ``_`` as equivalent. Subclasses may
    override ``_aliases`` to map legacy values onto current members.
    """

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        """Return legacy value aliases, keyed by normalized legacy value."""
        return {}

    @classmethod
    def _missing_(cls, value: object) -> BaseStrEnum | None:
        """Resolve case-insensitive, hyphenated and aliased values.

        Args:
            value: The value to look up in the enumeration

        Returns:
            BaseStrEnum | None: The matching enum member if found, None otherwise
        """
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("-", "_")
        key = cls._aliases().get(key, key)
        for member in cls:
            if member.value.lower() == key:
                return member
        return None

    def __repr__(self) -> str:
        """Return the string value of the enum member."""
        return self.value

    def __str__(self) -> str:
        """Return the string representation of the enum member."""
        return self.value
