"""Context for criteria that can match nothing.

Selected when the criteria is provably empty: it references a parent document
that does not exist, or it was explicitly marked unsatisfiable. Every answer
follows from "iteration yields nothing"; the store is never consulted.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, List, Optional

from docq.contextual.base import Context
from docq.models import Record


class NullContext(Context):
    """Zero-I/O context that always reports no matching records.

    Holds only the criteria and its entity type, so it is safe to share
    between threads. No argument is validated and no operation raises.
    """

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        """Any two null contexts are equal, whatever their criteria or entity type"""
        return isinstance(other, NullContext)

    def __hash__(self):
        return hash(NullContext)

    def iterate(self, callback: Optional[Callable[[Record], Any]] = None):
        """Iterate over the null context. There are no records to visit.

        With ``callback`` it is called zero times and the context is returned.
        """
        records: Iterator[Record] = iter(())
        if callback is None:
            return records
        for record in records:
            callback(record)
        return self

    def exists(self) -> bool:
        return False

    def count(self) -> int:
        """Always zero, as the length of the materialized iteration"""
        return len(list(self.iterate()))

    def first(self) -> Optional[Record]:
        return next(self.iterate(), None)

    def last(self) -> Optional[Record]:
        record = None
        for record in self.iterate():
            pass
        return record

    def distinct(self, field: Any) -> List[Any]:
        """Always empty; ``field`` is not checked"""
        return []

    def pluck(self, *fields: Any) -> List[Any]:
        """Always empty, for any number of fields"""
        return []
