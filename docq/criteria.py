"""Immutable query criteria.

A ``Criteria`` names the target entity type and the filter, projection, sort
and paging to apply. Builder methods never mutate; each returns a new
criteria. ``is_provably_empty`` is the static check used by context selection
to decide whether a query can be answered without touching the store.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Optional, Tuple

from docq.errors import InvalidCriteriaError
from docq.models import Record, same_value

if TYPE_CHECKING:
    from docq.contextual.base import Context

OPERATORS = frozenset({
    "$eq", "$ne", "$in", "$nin", "$gt", "$gte", "$lt", "$lte", "$exists",
})

ASCENDING = 1
DESCENDING = -1

_MISSING = object()


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, set, frozenset)):
        return tuple(value)
    return value


def _compare(actual: Any, operator: str, expected: Any) -> bool:
    try:
        if operator == "$gt":
            return actual > expected
        if operator == "$gte":
            return actual >= expected
        if operator == "$lt":
            return actual < expected
        return actual <= expected
    except TypeError:
        # Mismatched types never match, as with a typed document store
        return False


def _equals(actual: Any, values: list, expected: Any) -> bool:
    # An array field matches the whole array or any one element
    return same_value(actual, expected) or any(same_value(v, expected) for v in values)


def _match_condition(record: Record, field: str, operator: str, expected: Any) -> bool:
    actual = record.lookup(field, _MISSING)
    if operator == "$exists":
        return (actual is not _MISSING) == bool(expected)
    if actual is _MISSING:
        actual = None
    values = list(actual) if isinstance(actual, (list, tuple)) else [actual]

    if operator == "$eq":
        return _equals(actual, values, expected)
    if operator == "$ne":
        return not _equals(actual, values, expected)
    if operator == "$in":
        return any(_equals(actual, values, e) for e in expected)
    if operator == "$nin":
        return not any(_equals(actual, values, e) for e in expected)
    if actual is None:
        return False
    return any(_compare(v, operator, expected) for v in values)


@dataclass(frozen=True)
class Criteria:
    """Immutable description of a query against one entity type"""
    entity: str
    conditions: Tuple[Tuple[str, str, Any], ...] = ()
    projection: Tuple[str, ...] = ()
    sort: Tuple[Tuple[str, int], ...] = ()
    limit: Optional[int] = None
    skip: int = 0
    unsatisfiable: bool = False

    @classmethod
    def children_of(cls, entity: str, parent: Optional[Record],
                    foreign_key: str = "parent_id") -> "Criteria":
        """Criteria for documents embedded in ``parent``.

        A missing parent can have no children, so the result is marked
        unsatisfiable instead of querying for a foreign key of ``None``.
        """
        criteria = cls(entity)
        if parent is None:
            return criteria.none()
        return criteria.where(**{foreign_key: parent.id})

    def where(self, selector: Optional[dict] = None, **fields) -> "Criteria":
        """Add conditions. Plain values mean equality; dict values hold operators,
        as in ``where(status="open", total={"$gt": 10})``.
        """
        selector = dict(selector or {})
        selector.update(fields)
        added = []
        for field, value in selector.items():
            if isinstance(value, dict) and value and all(k.startswith("$") for k in value):
                for operator, expected in value.items():
                    if operator not in OPERATORS:
                        raise InvalidCriteriaError(f"Unknown operator {operator!r} on field {field!r}")
                    if operator in ("$in", "$nin") and not isinstance(expected, (list, tuple, set, frozenset)):
                        raise InvalidCriteriaError(f"{operator} on field {field!r} needs a list of values")
                    added.append((field, operator, _freeze(expected)))
            else:
                added.append((field, "$eq", _freeze(value)))
        return replace(self, conditions=self.conditions + tuple(added))

    def any_in(self, **fields) -> "Criteria":
        """Shortcut for ``$in`` conditions"""
        return self.where({field: {"$in": values} for field, values in fields.items()})

    def only(self, *fields: str) -> "Criteria":
        """Restrict the fields carried by returned records"""
        return replace(self, projection=self.projection + tuple(fields))

    def order_by(self, field: str, direction: int = ASCENDING) -> "Criteria":
        if direction not in (ASCENDING, DESCENDING):
            raise InvalidCriteriaError(f"Sort direction must be 1 or -1, got {direction!r}")
        return replace(self, sort=self.sort + ((field, direction),))

    def limited(self, limit: int) -> "Criteria":
        if limit < 0:
            raise InvalidCriteriaError("limit must not be negative")
        return replace(self, limit=limit)

    def skipped(self, skip: int) -> "Criteria":
        if skip < 0:
            raise InvalidCriteriaError("skip must not be negative")
        return replace(self, skip=skip)

    def none(self) -> "Criteria":
        """Mark the criteria as matching nothing"""
        return replace(self, unsatisfiable=True)

    def is_provably_empty(self) -> bool:
        """Whether no document can match, decided without reading the store"""
        if self.unsatisfiable or self.limit == 0:
            return True
        # Two different $eq values are not contradictory: array fields match by containment
        presence = {}
        for field, operator, expected in self.conditions:
            if operator == "$in" and len(expected) == 0:
                return True
            if operator == "$exists":
                if presence.setdefault(field, bool(expected)) != bool(expected):
                    return True
        return False

    def matches(self, record: Record) -> bool:
        """Evaluate the filter against one record"""
        if record.entity != self.entity:
            return False
        return all(_match_condition(record, f, op, v) for f, op, v in self.conditions)

    def context(self, storage) -> "Context":
        """Resolve this criteria into a query context over ``storage``"""
        from docq.contextual.factory import create_context
        return create_context(self, storage)
