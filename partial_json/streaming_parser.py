#!/usr/bin/env python3
"""Incremental session: accumulate chunks, re-parse, keep the latest snapshot."""
import copy
import logging
from typing import Any, Generic, TypeVar

from partial_json.scanner import DEFAULT_MAX_DEPTH, NOTHING, parse

logger = logging.getLogger(__name__)

T = TypeVar('T')


class PartialJSONParser(Generic[T]):
    """Re-parse the whole accumulated buffer on every push.

    ``T`` documents the shape the snapshot is expected to grow into, e.g.
    ``PartialJSONParser[User]()``. It has no runtime effect: any field of
    ``T`` may still be missing from a snapshot.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.max_depth = max_depth
        self._buffer = ''
        self._snapshot: Any = NOTHING

    def push(self, chunk: str) -> None:
        """Append ``chunk`` and replace the snapshot with a fresh parse."""
        if not isinstance(chunk, str):
            raise TypeError(f"chunk must be str, not {type(chunk).__name__}")
        self._buffer += chunk
        self._snapshot = parse(self._buffer, self.max_depth)
        logger.debug("pushed %d chars, buffer now %d", len(chunk), len(self._buffer))

    def reset(self) -> None:
        self._buffer = ''
        self._snapshot = NOTHING
        logger.debug("parser reset")

    @property
    def value(self) -> Any:
        """Current snapshot (a copy), or ``NOTHING`` before any value formed."""
        return copy.deepcopy(self._snapshot)

    @property
    def has_value(self) -> bool:
        return self._snapshot is not NOTHING

    @property
    def buffer(self) -> str:
        return self._buffer
