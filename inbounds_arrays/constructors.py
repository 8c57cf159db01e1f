"""Convenience constructors returning wrapped arrays."""

from __future__ import annotations

from typing import Any, Sequence, Tuple

import numpy as _np
from numpy.typing import ArrayLike

from .core import InboundsArray, unwrap
from .dispatch import forward


def _resolve_dtype(dtype: Any) -> _np.dtype[Any] | None:
    if dtype is None:
        return None
    return _np.dtype(dtype)


def array(obj: ArrayLike, dtype: Any | None = None, copy: bool = True) -> InboundsArray:
    return InboundsArray(obj, dtype=_resolve_dtype(dtype), copy=copy)


def asarray(obj: ArrayLike, dtype: Any | None = None) -> InboundsArray:
    return InboundsArray(obj, dtype=_resolve_dtype(dtype))


def empty(shape, dtype: Any = float) -> InboundsArray:
    return InboundsArray._from_storage(_np.empty(shape, dtype=_resolve_dtype(dtype)))


def zeros(shape, dtype: Any = float) -> InboundsArray:
    return InboundsArray._from_storage(_np.zeros(shape, dtype=_resolve_dtype(dtype)))


def ones(shape, dtype: Any = float) -> InboundsArray:
    return InboundsArray._from_storage(_np.ones(shape, dtype=_resolve_dtype(dtype)))


def full(shape, value: Any, dtype: Any | None = None) -> InboundsArray:
    return InboundsArray._from_storage(_np.full(shape, value, dtype=_resolve_dtype(dtype)))


def eye(n: int, m: int | None = None, dtype: Any = float) -> InboundsArray:
    return InboundsArray._from_storage(_np.eye(n, m, dtype=_resolve_dtype(dtype)))


def arange(*args: Any, dtype: Any | None = None) -> InboundsArray:
    return InboundsArray._from_storage(_np.arange(*args, dtype=_resolve_dtype(dtype)))


def empty_like(arr: Any, dtype: Any | None = None) -> InboundsArray:
    return InboundsArray._from_storage(_np.empty(_shape(arr), dtype=_like_dtype(arr, dtype)))


def zeros_like(arr: Any, dtype: Any | None = None) -> InboundsArray:
    return InboundsArray._from_storage(_np.zeros(_shape(arr), dtype=_like_dtype(arr, dtype)))


def ones_like(arr: Any, dtype: Any | None = None) -> InboundsArray:
    return InboundsArray._from_storage(_np.ones(_shape(arr), dtype=_like_dtype(arr, dtype)))


def full_like(arr: Any, value: Any, dtype: Any | None = None) -> InboundsArray:
    return InboundsArray._from_storage(_np.full(_shape(arr), value, dtype=_like_dtype(arr, dtype)))


def _shape(arr: Any) -> Tuple[int, ...]:
    storage = unwrap(arr)
    if hasattr(storage, "shape"):
        return tuple(storage.shape)
    return _np.shape(storage)


def _like_dtype(arr: Any, dtype: Any | None) -> _np.dtype[Any]:
    if dtype is not None:
        return _np.dtype(dtype)
    storage = unwrap(arr)
    if hasattr(storage, "dtype"):
        return storage.dtype
    return _np.asarray(storage).dtype


def similar(arr: Any, dtype: Any | None = None, shape: Sequence[int] | None = None) -> Any:
    """Uninitialised storage of the same kind as ``arr``.

    The element type and shape default to those of ``arr``.  The result is
    wrapped exactly when ``arr`` is.
    """

    return forward("similar", (arr,), {"dtype": _resolve_dtype(dtype), "shape": shape})
