"""Identifier allocation for netlist documents.

Identifiers are handed out at element construction time and never
reused.  ``IdScheme.MONOTONIC`` threads one counter through the whole
document.  ``IdScheme.LEGACY_BANDS`` reproduces the numbering of older
generated files: network contents come from fixed per-network bands
(Rest at 500, step network *i* at 1000 + 100*i) while document-level
elements count up from 0.  Under that scheme the items of every
multilingual text are numbered last, after the parts and wires they sit
beside, in render order (comment before title).
"""

from __future__ import annotations

from enum import Enum

REST_BAND_START = 500
STEP_BAND_START = 1000
STEP_BAND_SIZE = 100


class IdScheme(str, Enum):
    MONOTONIC = "monotonic"
    LEGACY_BANDS = "legacy-bands"


class UidAllocator:
    """Monotonic integer source, optionally bounded to ``[start, limit)``."""

    def __init__(self, start: int = 0, limit: int | None = None):
        self.start = start
        self.limit = limit
        self._next = start

    def next(self) -> int:
        uid = self._next
        self._next += 1
        return uid

    @property
    def issued(self) -> int:
        return self._next - self.start

    @property
    def overflowed(self) -> bool:
        return self.limit is not None and self._next > self.limit

    def __repr__(self) -> str:
        return f"UidAllocator(start={self.start}, next={self._next}, limit={self.limit})"


class UidPlan:
    """Decides which allocator each part of the document draws from."""

    def __init__(self, scheme: IdScheme | str = IdScheme.MONOTONIC):
        self.scheme = IdScheme(scheme)
        self.document = UidAllocator(0)

    @property
    def defers_text_items(self) -> bool:
        return self.scheme is IdScheme.LEGACY_BANDS

    def rest_network(self) -> UidAllocator:
        if self.scheme is IdScheme.LEGACY_BANDS:
            return UidAllocator(REST_BAND_START, limit=STEP_BAND_START)
        return self.document

    def step_network(self, index: int) -> UidAllocator:
        """Allocator for the *index*-th (0-based) sequential step network."""
        if self.scheme is IdScheme.LEGACY_BANDS:
            start = STEP_BAND_START + index * STEP_BAND_SIZE
            return UidAllocator(start, limit=start + STEP_BAND_SIZE)
        return self.document
