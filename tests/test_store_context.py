import tempfile
from pathlib import Path

import pytest

from docq.contextual.none import NullContext
from docq.contextual.store import StoreContext
from docq.criteria import DESCENDING, Criteria
from docq.errors import InvalidCriteriaError
from docq.storage.json_storage import DocumentStorage


@pytest.fixture
def storage():
    """Create temporary storage with a few orders"""
    with tempfile.NamedTemporaryFile(suffix='.json', delete=False) as f:
        storage_path = Path(f.name)
    storage_path.unlink()
    storage = DocumentStorage(storage_path)
    storage.add_document("Order", {"status": "open", "total": 30, "tags": ["gift", "rush"]})
    storage.add_document("Order", {"status": "shipped", "total": 12.5, "tags": ["rush"]})
    storage.add_document("Order", {"status": "open", "total": 7})
    storage.add_document("User", {"name": "Ada"})
    yield storage
    storage_path.unlink(missing_ok=True)


def test_iterate_filters_by_entity_and_conditions(storage):
    context = StoreContext(Criteria("Order").where(status="open"), storage)
    assert [r.get("total") for r in context.iterate()] == [30, 7]


def test_iterate_with_callback_returns_context(storage):
    context = StoreContext(Criteria("Order"), storage)
    seen = []
    assert context.iterate(seen.append) is context
    assert len(seen) == 3


def test_count_matches_iteration(storage):
    context = StoreContext(Criteria("Order").where(total={"$gte": 10}), storage)
    assert context.count() == len(list(context.iterate())) == 2


def test_iteration_is_restartable(storage):
    context = StoreContext(Criteria("Order"), storage)
    assert len(list(context)) == len(list(context)) == 3


def test_iteration_sees_new_documents(storage):
    context = StoreContext(Criteria("User"), storage)
    assert context.count() == 1
    storage.add_document("User", {"name": "Grace"})
    assert context.count() == 2


def test_exists(storage):
    assert StoreContext(Criteria("Order"), storage).exists() is True
    assert StoreContext(Criteria("Order").where(status="lost"), storage).exists() is False


def test_first_and_last_follow_sort(storage):
    context = StoreContext(Criteria("Order").order_by("total", DESCENDING), storage)
    assert context.first().get("total") == 30
    assert context.last().get("total") == 7


def test_first_and_last_on_empty_result(storage):
    context = StoreContext(Criteria("Order").where(status="lost"), storage)
    assert context.first() is None
    assert context.last() is None


def test_skip_and_limit(storage):
    context = StoreContext(Criteria("Order").order_by("total").skipped(1).limited(1), storage)
    assert context.pluck("total") == [12.5]


def test_projection(storage):
    record = StoreContext(Criteria("Order").only("status"), storage).first()
    assert record.fields == {"status": "open"}
    assert record.id == 1


def test_distinct_flattens_arrays(storage):
    context = StoreContext(Criteria("Order"), storage)
    assert context.distinct("status") == ["open", "shipped"]
    assert context.distinct("tags") == ["gift", "rush"]
    assert context.distinct("missing") == []


def test_pluck_single_and_multiple(storage):
    context = StoreContext(Criteria("Order"), storage)
    assert context.pluck("total") == [30, 12.5, 7]
    assert context.pluck("id", "status") == [(1, "open"), (2, "shipped"), (3, "open")]
    assert context.pluck("missing") == [None, None, None]


def test_pluck_requires_a_field(storage):
    with pytest.raises(InvalidCriteriaError):
        StoreContext(Criteria("Order"), storage).pluck()


def test_aggregates(storage):
    context = StoreContext(Criteria("Order"), storage)
    assert context.sum("total") == 49.5
    assert context.avg("total") == pytest.approx(16.5)
    assert context.min("total") == 7
    assert context.max("total") == 30


def test_aggregates_on_empty_result_match_null_context(storage):
    """An empty store query and a null context give the same answers"""
    criteria = Criteria("Order").where(status="lost")
    active = StoreContext(criteria, storage)
    null = NullContext(criteria)
    for name in ("sum", "avg", "min", "max"):
        assert getattr(active, name)("total") == getattr(null, name)("total")
    assert active.count() == null.count()
    assert active.distinct("status") == null.distinct("status")
    assert active.pluck("id", "total") == null.pluck("id", "total")


def test_equality(storage):
    criteria = Criteria("Order").where(status="open")
    assert StoreContext(criteria, storage) == StoreContext(criteria, storage)
    assert StoreContext(criteria, storage) != StoreContext(Criteria("Order"), storage)
    assert StoreContext(criteria, storage) != NullContext(criteria)


@pytest.fixture
def mixed(storage):
    """Documents whose ``v`` field holds values of different types"""
    for value in ["x", 2, None, True, [1], {"a": 1}, 1.5]:
        storage.add_document("Mixed", {"v": value})
    storage.add_document("Mixed", {})
    return storage


def test_sort_orders_mixed_types_by_type_rank(mixed):
    """null, numbers, strings, objects, arrays, booleans"""
    context = StoreContext(Criteria("Mixed").order_by("v"), mixed)
    assert context.pluck("v") == [None, None, 1.5, 2, "x", {"a": 1}, [1], True]
    assert context.first().get("v") is None


def test_sort_descending_mixed_types(mixed):
    context = StoreContext(Criteria("Mixed").order_by("v", DESCENDING), mixed)
    assert context.first().get("v") is True
    assert context.last().get("v") is None


def test_min_and_max_over_mixed_types(mixed):
    context = StoreContext(Criteria("Mixed"), mixed)
    assert context.min("v") == 1.5
    assert context.max("v") is True


def test_distinct_keeps_booleans_apart_from_numbers(storage):
    for value in [1, True, 0, False, 1, True, 1.0]:
        storage.add_document("Flag", {"v": value})
    distinct = StoreContext(Criteria("Flag"), storage).distinct("v")
    assert distinct == [1, True, 0, False]
    assert [type(v) for v in distinct] == [int, bool, int, bool]
