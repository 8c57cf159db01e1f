"""The unchecked-access array wrapper and the storage contracts it relies on.

:class:`InboundsArray` holds exactly one storage value (``parent``).  Element
access goes straight to the storage without the wrapper adding any bounds
checks of its own, and every other operation is handed to
:mod:`inbounds_arrays.dispatch`, which runs a registered rule on the unwrapped
arguments and re-wraps array-valued results.
"""

from __future__ import annotations

import abc
import math
from typing import Any, Iterator, Mapping, Tuple

import numpy as _np
from numpy.lib.mixins import NDArrayOperatorsMixin

from . import settings as _settings
from .errors import NoMatchingRuleError
from .settings import CapabilityMode

_REQUIRED_ATTRIBUTES = ("shape", "dtype", "__getitem__")


def _has_attributes(subclass: type, names: Tuple[str, ...]) -> bool:
    mro = subclass.__mro__
    for name in names:
        for klass in mro:
            if name in klass.__dict__:
                if klass.__dict__[name] is None:
                    return False
                break
        else:
            return False
    return True


class ArrayContract(abc.ABC):
    """Structural contract of an array-like storage value.

    Any class exposing ``shape``, ``dtype`` and ``__getitem__`` satisfies the
    contract, which covers :class:`numpy.ndarray`, scipy sparse containers and
    most third-party array types.  Scalars are excluded.
    """

    __slots__ = ()

    @classmethod
    def __subclasshook__(cls, subclass: type):
        if cls is not ArrayContract:
            return NotImplemented
        if issubclass(subclass, (_np.generic, InboundsArray)):
            return NotImplemented
        if _has_attributes(subclass, _REQUIRED_ATTRIBUTES):
            return True
        return NotImplemented


def is_storage(value: Any) -> bool:
    """Whether ``value`` is storage that may be held by a wrapper."""

    return not isinstance(value, InboundsArray) and isinstance(value, ArrayContract)


def _as_storage(data: Any, dtype: Any | None, copy: bool) -> Any:
    if isinstance(data, _np.ndarray) or not is_storage(data):
        if copy:
            return _np.array(data, dtype=dtype, copy=True, subok=True)
        return _np.asanyarray(data, dtype=dtype)
    if dtype is not None and _np.dtype(dtype) != data.dtype:
        return data.astype(dtype)
    if copy:
        return data.copy()
    return data


def structural_array(storage: Any, dtype: Any | None = None, copy: bool | None = None) -> _np.ndarray:
    """Dense :class:`numpy.ndarray` view of ``storage`` (sparse storage is densified)."""

    if isinstance(storage, _np.ndarray):
        arr = storage
    elif hasattr(storage, "toarray"):
        arr = _np.asarray(storage.toarray())
    else:
        arr = _np.asarray(storage)
    if dtype is not None and arr.dtype != _np.dtype(dtype):
        return arr.astype(dtype)
    if copy:
        return arr.copy()
    return arr


def _unwrap_index(key: Any) -> Any:
    if isinstance(key, tuple):
        return tuple(item.parent if isinstance(item, InboundsArray) else item for item in key)
    if isinstance(key, InboundsArray):
        return key.parent
    return key


class InboundsArray(NDArrayOperatorsMixin):
    """Array wrapper whose element access is never bounds-checked by the wrapper.

    Wrapping is idempotent: ``InboundsArray(w) is w`` for an existing wrapper
    unless a ``dtype`` change or a copy is requested.  Non-storage inputs such
    as nested lists are converted with :func:`numpy.asarray` first.

    Python operators, ufuncs and NumPy functions are routed through the
    forwarding rules so that results derived from a wrapper are wrapped again.
    """

    __slots__ = ("parent",)

    def __new__(cls, data: Any, dtype: Any | None = None, copy: bool = False):
        if isinstance(data, InboundsArray):
            if dtype is None and not copy:
                return data
            data = data.parent
        return cls._from_storage(_as_storage(data, dtype, copy))

    @classmethod
    def _from_storage(cls, storage: Any) -> "InboundsArray":
        self = object.__new__(cls)
        self.parent = storage
        return self

    def __reduce__(self):
        return (type(self), (self.parent,))

    # ------------------------------------------------------------------
    # metadata, always taken from the parent
    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(dim) for dim in self.parent.shape)

    @property
    def ndim(self) -> int:
        return len(self.parent.shape)

    rank = ndim

    @property
    def size(self) -> int:
        return math.prod(self.shape)

    @property
    def dtype(self) -> _np.dtype[Any]:
        return self.parent.dtype

    element_type = dtype

    @property
    def axes(self) -> Tuple[range, ...]:
        return tuple(range(dim) for dim in self.shape)

    @property
    def T(self):
        return _np.transpose(self)

    def __len__(self) -> int:
        shape = self.parent.shape
        if not shape:
            raise TypeError("len() of unsized object")
        return int(shape[0])

    def __iter__(self) -> Iterator[Any]:
        for index in range(len(self)):
            yield self[index]

    def __contains__(self, value: Any) -> bool:
        return bool((structural_array(self.parent) == unwrap(value)).any())

    # ------------------------------------------------------------------
    # element access
    def __getitem__(self, key):
        result = self.parent[_unwrap_index(key)]
        if isinstance(result, _np.generic):
            return result
        return _policy.wrap_result(result, (self,))

    def __setitem__(self, key, value) -> None:
        if isinstance(value, InboundsArray):
            value = value.parent
        self.parent[_unwrap_index(key)] = value

    # ------------------------------------------------------------------
    # NumPy protocols
    def __array__(self, dtype: Any | None = None, copy: bool | None = None) -> _np.ndarray:
        if _settings.get_capability_mode() is CapabilityMode.EXPLICIT:
            raise NoMatchingRuleError(
                "__array__",
                (type(self.parent),),
                "implicit conversion is disabled in explicit capability mode",
            )
        return structural_array(self.parent, dtype=dtype, copy=copy)

    def __array_ufunc__(self, ufunc, method: str, *inputs: Any, **kwargs: Any):
        op = ufunc if method == "__call__" else (ufunc, method)
        return _dispatch.forward(op, inputs, kwargs, impl=getattr(ufunc, method))

    def __array_function__(self, func, types, args, kwargs):
        return _dispatch.forward(func, args, kwargs, impl=func)

    # ------------------------------------------------------------------
    # conveniences that forward like any other operation
    def copy(self) -> "InboundsArray":
        return _np.copy(self)

    def astype(self, dtype: Any, copy: bool = True) -> "InboundsArray":
        return _dispatch.forward("astype", (self, dtype), {"copy": copy})

    def fill(self, value: Any) -> "InboundsArray":
        return _dispatch.forward("fill", (self, value))

    def reshape(self, *shape: Any) -> "InboundsArray":
        if len(shape) == 1 and isinstance(shape[0], (tuple, list)):
            shape = tuple(shape[0])
        return _np.reshape(self, shape)

    def ravel(self) -> "InboundsArray":
        return _np.ravel(self)

    def transpose(self, *axes: Any) -> "InboundsArray":
        if len(axes) == 1 and isinstance(axes[0], (tuple, list)):
            axes = tuple(axes[0])
        return _np.transpose(self, axes or None)

    def conj(self) -> "InboundsArray":
        return _np.conjugate(self)

    def sum(self, axis: int | None = None, keepdims: bool = False):
        return _np.sum(self, axis=axis, keepdims=keepdims)

    def prod(self, axis: int | None = None, keepdims: bool = False):
        return _np.prod(self, axis=axis, keepdims=keepdims)

    def mean(self, axis: int | None = None, keepdims: bool = False):
        return _np.mean(self, axis=axis, keepdims=keepdims)

    def std(self, axis: int | None = None, ddof: int = 0, keepdims: bool = False):
        return _np.std(self, axis=axis, ddof=ddof, keepdims=keepdims)

    def var(self, axis: int | None = None, ddof: int = 0, keepdims: bool = False):
        return _np.var(self, axis=axis, ddof=ddof, keepdims=keepdims)

    def max(self, axis: int | None = None, keepdims: bool = False):
        return _np.max(self, axis=axis, keepdims=keepdims)

    def min(self, axis: int | None = None, keepdims: bool = False):
        return _np.min(self, axis=axis, keepdims=keepdims)

    def argmax(self, axis: int | None = None):
        return _np.argmax(self, axis=axis)

    def argmin(self, axis: int | None = None):
        return _np.argmin(self, axis=axis)

    def any(self, axis: int | None = None):
        return _np.any(self, axis=axis)

    def all(self, axis: int | None = None):
        return _np.all(self, axis=axis)

    # exports return plain values in every mode
    def toarray(self) -> _np.ndarray:
        return structural_array(self.parent)

    def tolist(self) -> list[Any]:
        return self.toarray().tolist()

    def item(self, *args: Any) -> Any:
        return self.toarray().item(*args)

    # ------------------------------------------------------------------
    def __bool__(self) -> bool:
        return bool(self.parent)

    def __repr__(self) -> str:
        return f"InboundsArray({self.parent!r})"

    def __str__(self) -> str:
        return str(self.parent)


def wrap(value: Any, dtype: Any | None = None, copy: bool = False) -> InboundsArray:
    return InboundsArray(value, dtype=dtype, copy=copy)


def unwrap(value: Any) -> Any:
    """Return the parent of a wrapper, or ``value`` unchanged."""

    if isinstance(value, InboundsArray):
        return value.parent
    return value


get_noninbounds = unwrap


def is_wrapped(value: Any) -> bool:
    return isinstance(value, InboundsArray)


def unwrap_all(value: Any) -> Any:
    """Recursively replace wrappers inside tuples, lists and mappings by their parents."""

    if isinstance(value, InboundsArray):
        return value.parent
    if isinstance(value, Mapping):
        return {key: unwrap_all(val) for key, val in value.items()}
    if isinstance(value, tuple):
        return tuple(unwrap_all(item) for item in value)
    if isinstance(value, list):
        return [unwrap_all(item) for item in value]
    return value


if _settings.structural_interface_enabled():
    ArrayContract.register(InboundsArray)


from . import dispatch as _dispatch  # noqa: E402
from . import policy as _policy  # noqa: E402
