"""A JSON-friendly mapping with typed, forgiving accessors."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _normalise(value: Any) -> Any:
    """Render integral floats as integers, the way JSON numbers usually read."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    if isinstance(value, Mapping):
        return {key: _normalise(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalise(item) for item in value]
    return value


def _dumps(value: Any) -> str:
    return json.dumps(
        _normalise(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


class Payload(dict):
    """A dictionary of JSON values with convenience accessors."""

    def set(self, key: str, value: Any) -> None:
        self[key] = value

    def to_json(self) -> str:
        """Serialise to compact JSON with sorted keys."""
        return _dumps(self)

    @classmethod
    def from_string(cls, text: str) -> Payload:
        """Parse a JSON object; anything that is not one gives an empty payload."""
        try:
            parsed = json.loads(text)
        except (ValueError, TypeError):
            return cls()
        if not isinstance(parsed, dict):
            return cls()
        return cls(parsed)

    @classmethod
    def from_str_map(cls, mapping: Mapping[str, str] | None) -> Payload:
        if mapping is None:
            return cls()
        return cls(mapping)

    def remove(self, key: str) -> None:
        self.pop(key, None)

    def has_key(self, key: str) -> bool:
        return key in self

    def parse_data(self, key: str) -> Any:
        """Decode the JSON text held (or rendered) under ``key``."""
        text = self.data_as_string(key)
        if not text:
            raise ValueError("no data")
        return json.loads(text)

    def get_bool(self, key: str) -> bool:
        value = self.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value in _TRUE_WORDS
        return False

    def clone(self) -> Payload:
        return Payload(self)

    def data_as_string(self, key: str) -> str:
        """Return a string value as is, any other value as JSON text."""
        if key not in self:
            return ""
        value = self[key]
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return _dumps(value)

    def get_string(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return _format_scalar(value)

    def get_string_list(self, key: str) -> list[str]:
        """Return the string elements of a list value; anything else gives []."""
        value = self.get(key)
        if isinstance(value, (list, tuple)):
            return [item for item in value if isinstance(item, str)]
        return []

    def get_int(self, key: str) -> int:
        """Return an integer; 0 when missing or null, -1 when not numeric."""
        value = self.get(key)
        if value is None:
            return 0
        if isinstance(value, bool):
            return -1
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value)
        return -1

    def join(self, other: Mapping[str, Any]) -> Payload:
        """Copy every entry of ``other`` into this payload and return it."""
        self.update(other)
        return self