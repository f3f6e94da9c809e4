"""Tests for syncviews.collection."""

import functools

import pytest

from syncviews.collection import Collection
from syncviews.core.errors import ConversionError, MissingComparatorError
from syncviews.records import Record


class Person(Record):
    defaults = {"role": "butler"}


def by_id_desc(left, right):
    return right.id - left.id


class TestConstruction:
    def test_records_from_mappings(self, example_source):
        assert [record.id for record in example_source] == [1, 2, 3, 4, 5]
        assert all(isinstance(record, Record) for record in example_source)

    def test_construction_is_silent(self, example_data, spy):
        source = Collection()
        source.on("all", spy)
        source.reset(example_data, silent=True)
        assert not spy.called

    def test_record_class(self):
        people = Collection([{"id": 1}], record_class=Person)
        assert isinstance(people.at(0), Person)
        assert people.at(0).get("role") == "butler"

    def test_comparator_orders_initial_records(self):
        people = Collection([{"id": 1, "name": "b"}, {"id": 2, "name": "a"}], comparator="name")
        assert people.pluck("name") == ["a", "b"]

    def test_rejects_non_mapping_items(self):
        with pytest.raises(ConversionError):
            Collection([42])

    def test_empty_collection_is_falsy_but_not_none(self):
        empty = Collection()
        assert len(empty) == 0
        assert empty is not None


class TestLookup:
    def test_get_by_id_cid_record_and_mapping(self, example_source):
        record = example_source.at(0)
        assert example_source.get(1) is record
        assert example_source.get(record.cid) is record
        assert example_source.get(record) is record
        assert example_source.get({"id": 1}) is record
        assert example_source.get(99) is None
        assert example_source.get(None) is None
        assert example_source.get(["unhashable"]) is None

    def test_get_other_record_with_same_id(self, example_source):
        twin = Record({"id": 2})
        assert example_source.get(twin) is example_source.at(1)

    def test_contains_and_has(self, example_source):
        assert 3 in example_source
        assert example_source.has(example_source.at(4))
        assert 42 not in example_source

    def test_at_and_index_of(self, example_source):
        last = example_source.at(-1)
        assert last.id == 5
        assert example_source.at(10) is None
        assert example_source.index_of(last) == 4
        assert example_source.index_of(Record()) is None

    def test_id_change_reindexes(self, example_source):
        record = example_source.get(1)
        record.set("id", 100)
        assert example_source.get(100) is record
        assert example_source.get(1) is None


class TestAdd:
    def test_add_appends_and_emits(self, example_source, addition, spy_factory):
        added, updated = spy_factory(), spy_factory()
        example_source.on({"add": added, "update": updated})
        record = example_source.add(addition)
        assert example_source.at(-1) is record
        assert added.calls[0][:2] == (record, example_source)
        changes = updated.last_args[1]["changes"]
        assert changes == {"added": [record], "removed": [], "merged": []}

    def test_add_at_position_reports_index(self, example_source, addition, spy):
        example_source.on("add", spy)
        record = example_source.add(addition, at=1)
        assert example_source.index_of(record) == 1
        assert spy.last_args[2]["index"] == 1

    def test_negative_at_counts_from_end(self, example_source, addition):
        record = example_source.add(addition, at=-1)
        assert example_source.at(-1) is record

    def test_add_existing_does_not_merge(self, example_source, spy):
        example_source.on("all", spy)
        example_source.add({"id": 1, "x": 99})
        assert example_source.get(1).get("x") == 10
        assert not spy.called

    def test_add_list_returns_list(self):
        source = Collection()
        records = source.add([{"id": 1}, {"id": 2}])
        assert [record.id for record in records] == [1, 2]

    def test_sorted_insert_emits_sort(self, spy):
        people = Collection([{"id": 1, "name": "c"}, {"id": 2, "name": "a"}], comparator="name")
        people.on("sort", spy)
        people.add({"id": 3, "name": "b"})
        assert people.pluck("name") == ["a", "b", "c"]
        assert spy.call_count == 1

    def test_sort_false_appends(self):
        people = Collection([{"id": 1, "name": "c"}], comparator="name")
        people.add({"id": 2, "name": "a"}, sort=False)
        assert people.pluck("name") == ["c", "a"]

    def test_push_and_unshift(self, example_source, addition):
        first = example_source.unshift({"id": 0})
        last = example_source.push(addition)
        assert example_source.at(0) is first
        assert example_source.at(-1) is last


class TestRemove:
    def test_remove_emits_index(self, example_source, removal, spy_factory):
        removed, updated = spy_factory(), spy_factory()
        example_source.on({"remove": removed, "update": updated})
        record = example_source.remove(removal)
        assert record.id == 3
        assert removed.last_args[2]["index"] == 2
        assert updated.last_args[1]["changes"]["removed"] == [record]
        assert len(example_source) == 4
        assert 3 not in example_source

    def test_remove_absent_is_silent(self, example_source, spy):
        example_source.on("all", spy)
        assert example_source.remove(99) is None
        assert example_source.remove([99, 100]) == []
        assert not spy.called

    def test_remove_one_returns_index(self, example_source):
        assert example_source.remove_one(4) == 3
        assert example_source.remove_one(4) is None

    def test_removed_record_events_no_longer_forwarded(self, example_source, spy):
        record = example_source.remove(1)
        example_source.on("change", spy)
        record.set("x", 1)
        assert not spy.called

    def test_pop_and_shift(self, example_source):
        assert example_source.pop().id == 5
        assert example_source.shift().id == 1
        assert example_source.pluck("id") == [2, 3, 4]
        assert Collection().pop() is None


class TestSet:
    def test_smart_update(self, example_source, spy_factory):
        added, removed, changed = spy_factory(), spy_factory(), spy_factory()
        example_source.on({"add": added, "remove": removed, "change": changed})
        example_source.set([{"id": 1, "x": 11}, {"id": 2}, {"id": 7}])
        assert example_source.pluck("id") == [1, 2, 7]
        assert example_source.get(1).get("x") == 11
        assert added.call_count == 1
        assert removed.call_count == 3
        assert changed.call_count == 1

    def test_merge_without_remove(self, example_source, update_patch, spy):
        example_source.on("change:x", spy)
        example_source.set(update_patch, remove=False)
        assert len(example_source) == 5
        assert example_source.get(1).attributes == {"id": 1, "x": 2, "y": 5, "b": 9}
        assert spy.call_count == 1

    def test_reorder_emits_sort(self, example_source, spy):
        example_source.on("sort", spy)
        example_source.set([{"id": i} for i in (5, 4, 3, 2, 1)])
        assert example_source.pluck("id") == [5, 4, 3, 2, 1]
        assert spy.call_count == 1

    def test_none_is_ignored(self, example_source):
        assert example_source.set(None) is None
        assert len(example_source) == 5


class TestReset:
    def test_reset_emits_single_event(self, example_source, spy_factory):
        reset, other = spy_factory(), spy_factory()
        example_source.on("reset", reset)
        example_source.on("add remove update", other)
        previous = list(example_source)
        example_source.reset([{"id": 9}])
        assert reset.call_count == 1
        assert not other.called
        assert reset.last_args[1]["previous_records"] == previous
        assert example_source.pluck("id") == [9]

    def test_reset_to_empty(self, example_source):
        example_source.reset()
        assert len(example_source) == 0
        assert example_source.get(1) is None


class TestSort:
    def test_sort_requires_comparator(self, example_source):
        with pytest.raises(MissingComparatorError):
            example_source.sort()

    @pytest.mark.parametrize(
        "comparator",
        [
            lambda record: -record.id,
            by_id_desc,
            functools.partial(by_id_desc),
        ],
        ids=["key", "cmp", "partial-cmp"],
    )
    def test_comparator_forms(self, example_source, comparator, spy):
        example_source.comparator = comparator
        example_source.on("sort", spy)
        example_source.sort()
        assert example_source.pluck("id") == [5, 4, 3, 2, 1]
        assert spy.call_count == 1

    def test_attribute_comparator_puts_missing_last(self, example_source):
        example_source.comparator = "y"
        example_source.sort()
        assert example_source.pluck("id") == [3, 4, 1, 2, 5]

    def test_silent_sort(self, example_source, spy):
        example_source.comparator = "id"
        example_source.on("sort", spy)
        example_source.sort(silent=True)
        assert not spy.called


class TestRecordEvents:
    def test_member_changes_are_forwarded(self, example_source, spy_factory):
        change, change_x = spy_factory(), spy_factory()
        example_source.on({"change": change, "change:x": change_x})
        record = example_source.get(2)
        record.set("x", 3)
        assert change.last_args[0] is record
        assert change_x.last_args[:2] == (record, 3)

    def test_add_event_of_other_collection_is_not_forwarded(self, example_source, spy):
        other = Collection()
        example_source.on("add", spy)
        other.add(example_source.at(0))
        assert not spy.called

    def test_shared_record_reports_to_both(self, example_source, spy_factory):
        other = Collection([example_source.at(0)])
        mine, theirs = spy_factory(), spy_factory()
        example_source.on("change", mine)
        other.on("change", theirs)
        example_source.at(0).set("y", 0)
        assert mine.call_count == 1
        assert theirs.call_count == 1


class TestQueries:
    def test_filter_find_where(self, example_source):
        assert [r.id for r in example_source.filter("x")] == [1, 2, 4]
        assert [r.id for r in example_source.where({"x": 10})] == [1, 2]
        assert example_source.find(lambda r: r.has("a")).id == 5
        assert example_source.find_where({"z": 8}).id == 2
        assert example_source.find_where({"z": 100}) is None

    def test_pluck_map_to_dicts(self, example_source):
        assert example_source.pluck("x") == [10, 10, None, 2, None]
        assert example_source.map(lambda r: r.id * 2) == [2, 4, 6, 8, 10]
        assert example_source.map("y") == [5, None, 3, 3, None]
        assert example_source.to_dicts()[0] == {"id": 1, "x": 10, "y": 5}

    def test_slice(self, example_source):
        assert [r.id for r in example_source.slice(1, 3)] == [2, 3]
