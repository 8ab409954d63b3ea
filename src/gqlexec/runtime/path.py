"""
Response path - location of a result cell, from the response root.
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Union


class ResponsePath(NamedTuple):
    """
    Linked path segment.

    Each segment points at its parent, so extending a path for a child field
    or list item never copies the prefix.
    """
    prev: Optional["ResponsePath"]
    key: Union[str, int]
    typename: Optional[str]

    def add(self, key: Union[str, int], typename: Optional[str] = None) -> "ResponsePath":
        return ResponsePath(self, key, typename)

    def as_list(self) -> list[Union[str, int]]:
        """["books", 0, "author"]"""
        keys: list[Union[str, int]] = []
        current: Optional[ResponsePath] = self
        while current is not None:
            keys.append(current.key)
            current = current.prev
        keys.reverse()
        return keys

    @property
    def field_depth(self) -> int:
        """Number of field segments (list indices are not counted)."""
        depth = 0
        current: Optional[ResponsePath] = self
        while current is not None:
            if isinstance(current.key, str):
                depth += 1
            current = current.prev
        return depth


def root_path(key: str, typename: Optional[str] = None) -> ResponsePath:
    return ResponsePath(None, key, typename)
