"""
Unit tests for setter discovery and binding plan caching.
"""
import threading

import pytest
import rowbinder.binding as binding
from rowbinder import Double, Long
from rowbinder.binding import BindingRegistry, build_plan, find_setter
from rowbinder.binding import get_registry
from rowbinder.types import ValueKind
from tests.fixtures.targets import Call, Contact


class TestFindSetter:
    """Tests for per-column setter discovery"""

    def test_finds_annotated_setters(self):
        entry = find_setter(Call, 'number')
        assert entry.name == 'setNumber'
        assert entry.kind is ValueKind.TEXT

        entry = find_setter(Call, 'date')
        assert entry.name == 'setDate'
        assert entry.kind is ValueKind.LONG

    def test_underscore_column(self):
        """Test `_id` binds to set_id"""
        entry = find_setter(Contact, '_id')
        assert entry.name == 'set_id'
        assert entry.kind is ValueKind.INTEGER

    def test_missing_setter(self):
        assert find_setter(Call, 'duration') is None

    def test_unannotated_setter_is_not_bound(self):
        assert find_setter(Contact, 'notes') is None

    def test_setter_must_take_exactly_one_argument(self):
        class Target:
            def setNone(self):
                pass

            def setTwo(self, a: int, b: int):
                pass

            def setKeyword(self, *, value: int):
                pass

            def setVariadic(self, *values: int):
                pass

        for column in ('none', 'two', 'keyword', 'variadic'):
            assert find_setter(Target, column) is None, column

    def test_non_callable_attribute_is_not_bound(self):
        class Target:
            setNumber = 'not a method'

            @property
            def setDate(self):
                return None

        assert find_setter(Target, 'number') is None
        assert find_setter(Target, 'date') is None

    def test_static_and_class_methods(self):
        class Target:
            seen = []

            @staticmethod
            def setNumber(number: str):
                Target.seen.append(number)

            @classmethod
            def setDate(cls, date: Long):
                cls.seen.append(date)

        target = Target()
        find_setter(Target, 'number').invoke(target, '555')
        find_setter(Target, 'date').invoke(target, 7)
        assert Target.seen == ['555', 7]

    def test_inherited_setter(self):
        class Child(Call):
            pass

        assert find_setter(Child, 'number').kind is ValueKind.TEXT

    def test_union_annotation_takes_first_kind_in_probe_order(self):
        class Target:
            def setValue(self, value: Double | str):
                pass

        assert find_setter(Target, 'value').kind is ValueKind.TEXT

    def test_string_annotations_resolved(self):
        class Target:
            def setValue(self, value: 'float'):
                pass

        assert find_setter(Target, 'value').kind is ValueKind.FLOAT


class TestBuildPlan:
    """Tests for plan construction"""

    def test_plan_length_matches_columns(self):
        columns = ['_id', 'name', 'times_contacted', 'rating', 'score', 'notes', 'ringtone']
        plan = build_plan(Contact, columns)
        assert len(plan) == len(columns)
        assert plan.columns == tuple(columns)

    def test_plan_entries(self):
        plan = build_plan(Contact, ['_id', 'name', 'times_contacted', 'rating', 'score', 'ringtone'])
        kinds = [entry.kind if entry else None for entry in plan.entries]
        assert kinds == [
            ValueKind.INTEGER,
            ValueKind.TEXT,
            ValueKind.LONG,
            ValueKind.FLOAT,
            ValueKind.DOUBLE,
            None,
        ]
        assert plan.bound_columns == ['_id', 'name', 'times_contacted', 'rating', 'score']

    def test_duplicate_setter_names_probe_independently(self):
        """Test two columns mapping to one setter both bind to it"""
        plan = build_plan(Call, ['number', 'Number'])
        assert [e.name for e in plan.entries] == ['setNumber', 'setNumber']


class TestRegistry:
    """Tests for plan caching"""

    def test_plan_is_cached(self, mocker):
        """Test the second lookup is served from cache without introspection"""
        spy = mocker.spy(binding, 'find_setter')
        registry = BindingRegistry()

        plan1 = registry.get_or_build_plan(Call, ['number', 'date'])
        assert spy.call_count == 2

        plan2 = registry.get_or_build_plan(Call, ('number', 'date'))
        assert spy.call_count == 2  # Still 2 - cache hit
        assert plan2 is plan1

    def test_types_cached_separately(self):
        registry = BindingRegistry()
        call_plan = registry.get_or_build_plan(Call, ['number'])
        contact_plan = registry.get_or_build_plan(Contact, ['number'])

        assert call_plan is not contact_plan
        assert call_plan.entries[0] is not None
        assert contact_plan.entries[0] is None
        assert len(registry) == 2

    def test_different_columns_get_their_own_plan(self):
        """Test a plan is never reused for a different column set"""
        registry = BindingRegistry()
        plan_a = registry.get_or_build_plan(Call, ['number', 'date'])
        plan_b = registry.get_or_build_plan(Call, ['date', 'number'])

        assert plan_a is not plan_b
        assert plan_b.entries[0].name == 'setDate'
        assert (Call, ['number', 'date']) in registry
        assert (Call, ['date']) not in registry

    def test_clear(self, mocker):
        spy = mocker.spy(binding, 'find_setter')
        registry = BindingRegistry()
        registry.get_or_build_plan(Call, ['number'])
        registry.clear()
        assert len(registry) == 0

        registry.get_or_build_plan(Call, ['number'])
        assert spy.call_count == 2

    def test_maxsize_evicts_least_recently_used(self):
        registry = BindingRegistry(maxsize=1)
        registry.get_or_build_plan(Call, ['number'])
        registry.get_or_build_plan(Contact, ['name'])

        assert len(registry) == 1
        assert (Contact, ['name']) in registry
        assert (Call, ['number']) not in registry

    def test_default_registry_is_singleton(self):
        assert get_registry() is get_registry()
        assert get_registry() is BindingRegistry.get_instance()

    def test_concurrent_builds_produce_one_plan(self, mocker):
        spy = mocker.spy(binding, 'build_plan')
        registry = BindingRegistry()
        plans = []

        def worker():
            plans.append(registry.get_or_build_plan(Contact, ['_id', 'name']))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert spy.call_count == 1
        assert all(plan is plans[0] for plan in plans)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
