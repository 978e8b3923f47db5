"""
Strip MongoDB operator injection from user-supplied values.
"""

from typing import Any


def sanitize(value: Any) -> Any:
    """
    Remove every dictionary key starting with ``$``, recursively.

    Lists are walked element by element; scalars are returned unchanged.
    The input is not mutated.
    """
    if isinstance(value, dict):
        return {
            key: sanitize(item)
            for key, item in value.items()
            if not (isinstance(key, str) and key.startswith("$"))
        }
    if isinstance(value, list):
        return [sanitize(item) for item in value]
    return value
