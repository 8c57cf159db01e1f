from __future__ import annotations

from collections import namedtuple

import numpy as np

from inbounds_arrays import InboundsArray
from inbounds_arrays.policy import collect_wrappers, rewrap, wrap_result

Pair = namedtuple("Pair", ["values", "count"])


def test_storage_results_are_wrapped():
    result = wrap_result(np.zeros(2))
    assert isinstance(result, InboundsArray)


def test_scalars_and_handles_pass_through():
    handle = object()
    assert wrap_result(3.0) == 3.0
    assert wrap_result("label") == "label"
    assert wrap_result(handle) is handle
    assert wrap_result(None) is None
    assert not isinstance(wrap_result(np.float64(1.5)), InboundsArray)


def test_parent_of_an_input_returns_that_wrapper():
    w = InboundsArray(np.zeros(2))
    assert wrap_result(w.parent, [w]) is w


def test_tuples_and_named_tuples_are_processed_elementwise():
    values, count = wrap_result((np.zeros(2), 1))
    assert isinstance(values, InboundsArray)
    assert count == 1

    pair = wrap_result(Pair(np.ones(2), 2))
    assert isinstance(pair, Pair)
    assert isinstance(pair.values, InboundsArray)
    assert pair.count == 2

    items = wrap_result([np.ones(1), "x"])
    assert isinstance(items, list)
    assert isinstance(items[0], InboundsArray)


def test_rewrap_only_when_a_wrapper_took_part():
    plain = np.zeros(2)
    assert rewrap(plain, []) is plain
    w = InboundsArray(np.ones(2))
    assert isinstance(rewrap(plain, [w]), InboundsArray)


def test_collect_wrappers_searches_nested_arguments():
    first = InboundsArray(np.zeros(1))
    second = InboundsArray(np.ones(1))
    found = collect_wrappers(([first, 1.0],), {"out": (second,)})
    assert len(found) == 2
    assert found[0] is first
    assert found[1] is second


def test_mixed_operands_produce_wrapped_result():
    matrix = InboundsArray(np.eye(2))
    vector = np.array([1.0, 2.0])
    assert isinstance(matrix @ vector, InboundsArray)
    assert isinstance(vector + matrix, InboundsArray)
    assert isinstance(np.multiply(vector, matrix), InboundsArray)


def test_decomposition_results_are_wrapped_elementwise():
    u, s, vh = np.linalg.svd(InboundsArray(np.eye(3)))
    assert isinstance(u, InboundsArray)
    assert isinstance(s, InboundsArray)
    assert isinstance(vh, InboundsArray)
    assert s.rank == 1
