"""Tests for iteration strategies and their registry."""

import operator
from types import SimpleNamespace

import pytest

from taskloop.scheduler.tasks import IterationType, Shape, list_strategies, select_strategy
from taskloop.scheduler.tasks.strategies import (
    MISSING,
    _accepted_args,
    each_mapping,
    each_sequence,
    map_mapping,
    map_sequence,
    reduce_mapping,
    reduce_sequence,
)


def fake_task(collection, result=None, keys=None):
    return SimpleNamespace(collection=collection, keys=keys, result=result)


class TestSequenceStrategies:
    """Tests for sequence effects."""

    def test_each_calls_with_value_index_collection(self):
        items = ["x", "y"]
        calls = []
        effect = each_sequence(fake_task(items), lambda *args: calls.append(args))

        effect(1)
        effect(0)

        assert calls == [("y", 1, items), ("x", 0, items)]

    def test_map_writes_at_index(self):
        task = fake_task([3, 4, 5], result=[None] * 3)
        effect = map_sequence(task, lambda v: v + 1)

        effect(2)

        assert task.result == [None, None, 6]

    def test_reduce_replaces_result(self):
        task = fake_task([3, 4], result=10)
        effect = reduce_sequence(task, operator.sub)

        effect(0)
        effect(1)

        assert task.result == 3

    def test_reduce_without_seed_takes_element(self):
        task = fake_task([7, 8], result=MISSING)
        effect = reduce_sequence(task, operator.add)

        effect(0)

        assert task.result == 7


class TestMappingStrategies:
    """Tests for mapping effects."""

    def test_each_uses_key_at_index(self):
        data = {"k1": "v1", "k2": "v2"}
        calls = []
        effect = each_mapping(fake_task(data, keys=("k1", "k2")), lambda v, k: calls.append((k, v)))

        effect(1)

        assert calls == [("k2", "v2")]

    def test_map_writes_at_key(self):
        task = fake_task({"a": 2, "b": 3}, result={}, keys=("a", "b"))
        effect = map_mapping(task, lambda v: v * v)

        effect(1)
        effect(0)

        assert task.result == {"b": 9, "a": 4}

    def test_reduce_passes_key_and_collection(self):
        data = {"a": 1, "b": 2}
        task = fake_task(data, result="", keys=("a", "b"))
        effect = reduce_mapping(task, lambda acc, v, k, coll: acc + f"{k}{v}{len(coll)}")

        effect(0)
        effect(1)

        assert task.result == "a12b22"


class TestArityAdaptation:
    """Tests for matching element function arity."""

    def test_counts_positional_parameters(self):
        assert _accepted_args(lambda v: v, 3) == 1
        assert _accepted_args(lambda v, i: v, 3) == 2
        assert _accepted_args(lambda v, i, c, extra=None: v, 3) == 3

    def test_varargs_receive_everything(self):
        assert _accepted_args(lambda *args: args, 4) == 4

    def test_capped_at_available(self):
        assert _accepted_args(lambda a, b, c, d, e: a, 3) == 3

    def test_builtin_positional_only(self):
        assert _accepted_args(operator.add, 4) == 2

    def test_keyword_only_not_counted(self):
        assert _accepted_args(lambda v, *, scale=1: v, 3) == 1

    @pytest.mark.parametrize("converter", [int, str, float, tuple, bool])
    def test_builtin_types_get_element_only(self, converter):
        assert _accepted_args(converter, 3) == 1
        assert _accepted_args(converter, 4) == 2

    def test_user_class_uses_signature(self):
        class Pair:
            def __init__(self, value, index):
                self.value, self.index = value, index

        assert _accepted_args(Pair, 3) == 2


class TestRegistry:
    """Tests for strategy selection."""

    @pytest.mark.parametrize(
        "iteration_type,shape,factory",
        [
            (IterationType.EACH, Shape.SEQUENCE, each_sequence),
            (IterationType.MAP, Shape.SEQUENCE, map_sequence),
            (IterationType.REDUCE, Shape.SEQUENCE, reduce_sequence),
            (IterationType.EACH, Shape.MAPPING, each_mapping),
            (IterationType.MAP, Shape.MAPPING, map_mapping),
            (IterationType.REDUCE, Shape.MAPPING, reduce_mapping),
        ],
    )
    def test_select(self, iteration_type, shape, factory):
        assert select_strategy(iteration_type, shape) is factory

    def test_select_by_string_values(self):
        assert select_strategy("map", "mapping") is map_mapping

    def test_every_pair_registered(self):
        assert len(list_strategies()) == len(IterationType) * len(Shape)

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="No iteration strategy"):
            select_strategy("filter", Shape.SEQUENCE)
