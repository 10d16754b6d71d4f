"""The capability surface shared by every query context.

A context binds a ``Criteria`` to an execution strategy. Callers receive one
from ``docq.contextual.factory.create_context`` and use it only through the
methods below, without knowing which variant they hold.

The contract defines no errors of its own. Store-backed variants may raise
``docq.errors.DocqError`` subclasses and may block while iterating; nothing
here assumes execution is synchronous or free.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from numbers import Number
from typing import Any, Callable, Iterator, List, Optional

from docq.criteria import Criteria
from docq.models import Record, order_key


class Context(ABC):
    """Abstract query context.

    Implementers may validate the field names given to ``distinct`` and
    ``pluck``. ``NullContext`` must not: it has nothing to project, and a
    validation error there would only ever appear on the provably empty path.
    """

    __slots__ = ("_criteria", "_entity")

    def __init__(self, criteria: Criteria):
        self._criteria = criteria
        self._entity = criteria.entity

    @property
    def criteria(self) -> Criteria:
        return self._criteria

    @property
    def entity(self) -> str:
        return self._entity

    def __iter__(self) -> Iterator[Record]:
        return iter(self.iterate())

    @abstractmethod
    def iterate(self, callback: Optional[Callable[[Record], Any]] = None):
        """Iterate over matching records.

        Without ``callback`` return a fresh iterator. With one, call it once
        per record and return the context so calls can be chained.
        """

    @abstractmethod
    def exists(self) -> bool:
        """Whether at least one record matches"""

    @abstractmethod
    def count(self) -> int:
        """Number of records ``iterate`` yields"""

    @abstractmethod
    def first(self) -> Optional[Record]:
        """The first matching record, or None"""

    @abstractmethod
    def last(self) -> Optional[Record]:
        """The last matching record, or None"""

    @abstractmethod
    def distinct(self, field: str) -> List[Any]:
        """Distinct values of ``field`` across matching records"""

    @abstractmethod
    def pluck(self, *fields: str) -> List[Any]:
        """Projected values, one entry per matching record.

        A single field gives plain values, several fields give tuples.
        """

    @abstractmethod
    def __eq__(self, other: object) -> bool:
        """Structural or variant equality, never a record-by-record comparison"""

    # Aggregation, derived from pluck so every variant agrees with its own projection

    def sum(self, field: str) -> Number:
        return sum(v for v in self.pluck(field) if _is_numeric(v))

    def avg(self, field: str) -> Optional[float]:
        values = [v for v in self.pluck(field) if _is_numeric(v)]
        if not values:
            return None
        return sum(values) / len(values)

    def min(self, field: str) -> Any:
        return min((v for v in self.pluck(field) if v is not None), key=order_key, default=None)

    def max(self, field: str) -> Any:
        return max((v for v in self.pluck(field) if v is not None), key=order_key, default=None)

    def __repr__(self):
        return f"<{type(self).__name__} entity={self._entity!r}>"


def _is_numeric(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)
