"""Context that executes criteria against a document storage."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, List, Optional

from docq.contextual.base import Context
from docq.criteria import Criteria
from docq.errors import InvalidCriteriaError
from docq.models import Record, order_key, same_value

logger = logging.getLogger(__name__)


def _sort_key(field: str):
    def key(record: Record):
        # Missing values sort with null, first
        return order_key(record.get(field))
    return key


class StoreContext(Context):
    """Store-backed context.

    Every call to ``iterate`` re-executes the criteria against ``storage``,
    which must provide ``iter_documents(entity)``. No cursor is kept between
    calls, so a context can be iterated any number of times.
    """

    __slots__ = ("_storage",)

    def __init__(self, criteria: Criteria, storage):
        super().__init__(criteria)
        self._storage = storage

    @property
    def storage(self):
        return self._storage

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StoreContext):
            return False
        return self._criteria == other._criteria and self._storage is other._storage

    def __hash__(self):
        return hash((StoreContext, self._criteria.entity, id(self._storage)))

    def _execute(self) -> Iterator[Record]:
        criteria = self._criteria
        logger.debug("Executing %s query with %d condition(s)", criteria.entity, len(criteria.conditions))
        records = (r for r in self._storage.iter_documents(criteria.entity) if criteria.matches(r))

        if criteria.sort:
            records = list(records)
            # Stable sorts applied from the least significant key
            for field, direction in reversed(criteria.sort):
                records.sort(key=_sort_key(field), reverse=direction < 0)

        stop = None if criteria.limit is None else criteria.skip + criteria.limit
        for index, record in enumerate(records):
            if stop is not None and index >= stop:
                break
            if index < criteria.skip:
                continue
            yield record.project(criteria.projection) if criteria.projection else record

    def iterate(self, callback: Optional[Callable[[Record], Any]] = None):
        if callback is None:
            return self._execute()
        for record in self._execute():
            callback(record)
        return self

    def exists(self) -> bool:
        return next(self._execute(), None) is not None

    def count(self) -> int:
        return sum(1 for _ in self._execute())

    def first(self) -> Optional[Record]:
        return next(self._execute(), None)

    def last(self) -> Optional[Record]:
        record = None
        for record in self._execute():
            pass
        return record

    def distinct(self, field: str) -> List[Any]:
        """Distinct values of ``field``, in first-seen order.

        Array values contribute their elements; records lacking the field are skipped.
        """
        seen: List[Any] = []
        for record in self._execute():
            value = record.lookup(field, None)
            if value is None:
                continue
            for item in value if isinstance(value, list) else [value]:
                if not any(same_value(s, item) for s in seen):
                    seen.append(item)
        return seen

    def pluck(self, *fields: str) -> List[Any]:
        if not fields:
            raise InvalidCriteriaError("pluck needs at least one field")
        if len(fields) == 1:
            return [record.get(fields[0]) for record in self._execute()]
        return [tuple(record.get(f) for f in fields) for record in self._execute()]
