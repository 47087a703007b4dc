"""Per-element effects for IterationTask.

Each factory captures the task's collection (and keys, for mappings) and
returns ``effect(index)``. Effects only decide what happens to one
element; when the next element runs is the driver's business.
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Tuple

if TYPE_CHECKING:
    from .iteration import IterationTask, IterationType

Effect = Callable[[int], None]
StrategyFactory = Callable[["IterationTask", Callable[..., Any]], Effect]

# Sentinel for "no REDUCE seed given"; None is a valid seed
MISSING = object()


class Shape(str, Enum):
    """Collection shapes an IterationTask can walk."""

    SEQUENCE = "sequence"
    MAPPING = "mapping"


def _accepted_args(fn: Callable[..., Any], available: int) -> int:
    """Number of positional arguments ``fn`` can take, capped at ``available``.

    Builtin types (``int``, ``str``, ``tuple``...) are converters: they get
    the element (and the accumulator, for REDUCE) but never the key or the
    collection, whatever their signature reports.
    """
    if isinstance(fn, type) and fn.__module__ == "builtins":
        return available - 2

    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return available

    count = 0
    for param in params:
        if param.kind == param.VAR_POSITIONAL:
            return available
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            count += 1
    return min(count, available)


def _fit(fn: Callable[..., Any], available: int) -> Callable[..., Any]:
    """Wrap ``fn`` so extra trailing arguments are dropped."""
    accepted = _accepted_args(fn, available)
    if accepted == available:
        return fn
    return lambda *args: fn(*args[:accepted])


# ============================================================
# Sequence strategies
# ============================================================

def each_sequence(task: "IterationTask", fn: Callable[..., Any]) -> Effect:
    items = task.collection
    call = _fit(fn, 3)

    def effect(idx: int) -> None:
        call(items[idx], idx, items)

    return effect


def map_sequence(task: "IterationTask", fn: Callable[..., Any]) -> Effect:
    items = task.collection
    call = _fit(fn, 3)

    def effect(idx: int) -> None:
        task.result[idx] = call(items[idx], idx, items)

    return effect


def reduce_sequence(task: "IterationTask", fn: Callable[..., Any]) -> Effect:
    items = task.collection
    call = _fit(fn, 4)

    def effect(idx: int) -> None:
        if task.result is MISSING:
            task.result = items[idx]
        else:
            task.result = call(task.result, items[idx], idx, items)

    return effect


# ============================================================
# Mapping strategies
# ============================================================

def each_mapping(task: "IterationTask", fn: Callable[..., Any]) -> Effect:
    items = task.collection
    keys = task.keys
    call = _fit(fn, 3)

    def effect(idx: int) -> None:
        key = keys[idx]
        call(items[key], key, items)

    return effect


def map_mapping(task: "IterationTask", fn: Callable[..., Any]) -> Effect:
    items = task.collection
    keys = task.keys
    call = _fit(fn, 3)

    def effect(idx: int) -> None:
        key = keys[idx]
        task.result[key] = call(items[key], key, items)

    return effect


def reduce_mapping(task: "IterationTask", fn: Callable[..., Any]) -> Effect:
    items = task.collection
    keys = task.keys
    call = _fit(fn, 4)

    def effect(idx: int) -> None:
        key = keys[idx]
        if task.result is MISSING:
            task.result = items[key]
        else:
            task.result = call(task.result, items[key], key, items)

    return effect


# ============================================================
# Registry
# ============================================================

_STRATEGY_REGISTRY: Dict[Tuple[str, Shape], StrategyFactory] = {
    ("each", Shape.SEQUENCE): each_sequence,
    ("map", Shape.SEQUENCE): map_sequence,
    ("reduce", Shape.SEQUENCE): reduce_sequence,
    ("each", Shape.MAPPING): each_mapping,
    ("map", Shape.MAPPING): map_mapping,
    ("reduce", Shape.MAPPING): reduce_mapping,
}


def select_strategy(iteration_type: "IterationType", shape: Shape) -> StrategyFactory:
    """Look up the effect factory for an (iteration type, shape) pair.

    Raises:
        ValueError: If the pair is not registered.
    """
    key = (getattr(iteration_type, "value", iteration_type), Shape(shape))
    if key not in _STRATEGY_REGISTRY:
        available = ", ".join(f"{t}/{s.value}" for t, s in sorted(_STRATEGY_REGISTRY))
        raise ValueError(
            f"No iteration strategy for {key[0]}/{key[1].value}. "
            f"Available: {available}"
        )
    return _STRATEGY_REGISTRY[key]


def list_strategies() -> list:
    """List registered (iteration type, shape) pairs."""
    return sorted((t, s.value) for t, s in _STRATEGY_REGISTRY)
