"""Rules for NumPy array functions on dense storage.

The NumPy functions listed here run unchanged on the unwrapped
:class:`numpy.ndarray`; the forwarder then wraps array-valued results.  A few
operations NumPy has no function for are registered under string names.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np

from ..dispatch import RuleRegistry, forward

LOGGER = logging.getLogger(__name__)

# functions taking the array as first argument
ARRAY_FUNCTIONS = (
    # metadata
    "shape", "ndim", "size", "copy",
    # reductions
    "sum", "prod", "max", "min", "amax", "amin", "mean", "median", "std", "var",
    "all", "any", "cumsum", "cumprod", "ptp", "average", "count_nonzero",
    "nansum", "nanprod", "nanmax", "nanmin", "nanmean", "nanmedian", "nanstd", "nanvar",
    "nanargmax", "nanargmin", "nancumsum", "nancumprod", "quantile", "percentile",
    "nanquantile", "nanpercentile",
    # search
    "argmax", "argmin", "argsort", "sort", "where", "nonzero", "flatnonzero",
    "argwhere", "searchsorted", "unique", "isin", "extract",
    # shape and layout
    "reshape", "ravel", "transpose", "swapaxes", "moveaxis", "squeeze", "expand_dims",
    "flip", "fliplr", "flipud", "roll", "rot90", "tile", "repeat", "broadcast_to",
    "atleast_1d", "atleast_2d", "atleast_3d", "split", "array_split", "diag", "diagonal",
    "trace", "tril", "triu", "pad", "take", "put", "clip", "round", "around",
    "empty_like", "zeros_like", "ones_like", "full_like",
    # comparison
    "allclose", "isclose", "array_equal", "array_equiv",
    # products
    "dot", "vdot", "inner", "outer", "kron", "tensordot", "cross",
    "convolve", "correlate", "diff", "gradient", "interp", "histogram", "bincount",
    "broadcast_arrays", "meshgrid",
)

LINALG_FUNCTIONS = (
    "solve", "inv", "pinv", "det", "slogdet", "norm", "eig", "eigh", "eigvals",
    "eigvalsh", "svd", "qr", "cholesky", "lstsq", "matrix_rank", "matrix_power",
)

# functions taking a sequence of arrays as first argument
SEQUENCE_FUNCTIONS = (
    "concatenate", "stack", "vstack", "hstack", "dstack", "column_stack", "block",
)


def _dense_functions():
    seen = set()
    candidates = [(getattr(np, name, None), name, (np.ndarray,)) for name in ARRAY_FUNCTIONS]
    candidates += [(getattr(np.linalg, name), f"linalg.{name}", (np.ndarray,)) for name in LINALG_FUNCTIONS]
    candidates += [(getattr(np, name, None), name, (Sequence,)) for name in SEQUENCE_FUNCTIONS]
    for func, name, pattern in candidates:
        if func is None:
            LOGGER.debug("numpy.%s is not available; skipping", name)
            continue
        # aliases such as amax/max share one function object in some releases
        if func in seen:
            continue
        seen.add(func)
        yield func, pattern


def _similar(a: np.ndarray, dtype: Any = None, shape: Any = None) -> np.ndarray:
    return np.empty(a.shape if shape is None else shape, dtype=a.dtype if dtype is None else dtype)


def _astype(a: np.ndarray, dtype: Any, copy: bool = True) -> np.ndarray:
    return a.astype(dtype, copy=copy)


def _fill(a: np.ndarray, value: Any) -> np.ndarray:
    a.fill(value)
    return a


def _selectdim(a: np.ndarray, axis: int, index: Any) -> np.ndarray:
    key = [slice(None)] * a.ndim
    key[axis] = index
    return a[tuple(key)]


def _reverse_inplace(a: np.ndarray, axis: Any = None) -> np.ndarray:
    a[...] = np.flip(a, axis=axis).copy()
    return a


def selectdim(arr: Any, axis: int, index: Any) -> Any:
    """View of ``arr`` with ``axis`` fixed at ``index``; wrapped when ``arr`` is."""

    return forward("selectdim", (arr, axis, index))


def reverse_inplace(arr: Any, axis: Any = None) -> Any:
    """Reverse ``arr`` in place along ``axis`` (all axes by default) and return it."""

    return forward("reverse_inplace", (arr,), {"axis": axis})


def register_defaults(registry: RuleRegistry) -> None:
    for func, pattern in _dense_functions():
        registry.register(func, *pattern)(func)
    registry.register("similar", np.ndarray)(_similar)
    registry.register("astype", np.ndarray)(_astype)
    registry.register("fill", np.ndarray)(_fill)
    registry.register("selectdim", np.ndarray)(_selectdim)
    registry.register("reverse_inplace", np.ndarray)(_reverse_inplace)
