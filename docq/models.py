import json
from dataclasses import dataclass, field
from datetime import datetime
from numbers import Number
from typing import Any, Dict, Optional

_MISSING = object()


def same_value(a: Any, b: Any) -> bool:
    """Field value equality: tuples equal lists, booleans never equal numbers"""
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(same_value(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(same_value(a[k], b[k]) for k in a)
    return a == b


def order_key(value: Any) -> tuple:
    """Total order over mixed field values.

    Types rank null, numbers, strings, objects, arrays, booleans, then anything else.
    """
    if value is None:
        return (0,)
    if isinstance(value, bool):
        return (5, value)
    if isinstance(value, Number):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, dict):
        return (3, tuple((str(k), order_key(v)) for k, v in sorted(value.items(), key=lambda kv: str(kv[0]))))
    if isinstance(value, (list, tuple)):
        return (4, tuple(order_key(v) for v in value))
    return (6, repr(value))


@dataclass
class Record:
    """A stored document of one entity type"""
    id: int
    entity: str
    fields: Dict[str, Any] = field(default_factory=dict)
    parent_id: Optional[int] = None  # ID of the parent document, if embedded
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        """Convert record to dictionary for JSON serialization"""
        return {
            'id': self.id,
            'entity': self.entity,
            'fields': self.fields,
            'parent_id': self.parent_id,
            'created_at': self.created_at
        }

    @classmethod
    def from_dict(cls, data: dict):
        """Create record from dictionary (handles flat legacy documents)"""
        data = dict(data)
        if 'fields' not in data:
            # Legacy documents kept their fields at the top level
            known = {'id', 'entity', 'parent_id', 'created_at'}
            data['fields'] = {k: v for k, v in data.items() if k not in known}
            data = {k: v for k, v in data.items() if k in known or k == 'fields'}
        if 'entity' not in data:
            data['entity'] = 'document'
        return cls(**data)

    def to_row(self) -> tuple:
        """Column values for the SQLite documents table (without id)"""
        return (self.entity, json.dumps(self.fields), self.parent_id, self.created_at)

    @classmethod
    def from_row(cls, row):
        """Create record from a SQLite row"""
        return cls(
            id=row['id'],
            entity=row['entity'],
            fields=json.loads(row['fields'] or '{}'),
            parent_id=row['parent_id'],
            created_at=row['created_at'],
        )

    def lookup(self, path: str, default: Any = _MISSING) -> Any:
        """Resolve a field path; dotted paths walk into nested dicts.

        Raises KeyError when the path is missing and no default is given.
        """
        if path in ('id', 'entity', 'parent_id', 'created_at'):
            return getattr(self, path)
        value: Any = self.fields
        for part in path.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            elif default is _MISSING:
                raise KeyError(path)
            else:
                return default
        return value

    def get(self, path: str) -> Any:
        """Resolve a field path, returning None when it is missing"""
        return self.lookup(path, None)

    def has(self, path: str) -> bool:
        """Check whether a field path is present"""
        return self.lookup(path, _MISSING) is not _MISSING

    def project(self, paths) -> 'Record':
        """Return a copy carrying only the given top-level fields"""
        wanted = {p.split('.')[0] for p in paths}
        return Record(
            id=self.id,
            entity=self.entity,
            fields={k: v for k, v in self.fields.items() if k in wanted},
            parent_id=self.parent_id,
            created_at=self.created_at,
        )
