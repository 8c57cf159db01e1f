"""SciPy sparse storage: recognition, constructors and rules.

Compressed sparse column (CSC) is the default layout; :func:`to_csr` converts
to the row-compressed layout.  Products between wrapped sparse operands keep
their storage kind and are wrapped like any other result.
"""

from __future__ import annotations

import logging
import operator
from typing import Any, Callable, Dict

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from ..core import ArrayContract
from ..dispatch import RuleRegistry, forward
from .linalg import SparseLUFactorization

LOGGER = logging.getLogger(__name__)

_SPARSE_BASES = (sp.sparray, sp.spmatrix)
_COMPRESSED_FORMATS = ("csr", "csc")


class SparseStorage(ArrayContract):
    """Any SciPy sparse array or matrix."""

    __slots__ = ()

    @classmethod
    def __subclasshook__(cls, subclass: type):
        if cls is SparseStorage and issubclass(subclass, _SPARSE_BASES):
            return True
        return NotImplemented


def sparse(a: Any, cols: Any = None, values: Any = None, shape: Any = None) -> Any:
    """Build CSC storage.

    ``sparse(a)`` converts a dense matrix or another sparse layout;
    ``sparse(rows, cols, values, shape)`` assembles coordinates, summing
    duplicates.  Wrapped inputs give a wrapped result.
    """

    if cols is None:
        return forward("sparse", (a,))
    return forward("sparse_coo", (a, cols, values), {"shape": shape})


def to_csr(a: Any) -> Any:
    return forward("to_csr", (a,))


def _to_csc(a: Any) -> sp.csc_array:
    if getattr(a, "ndim", 2) != 2:
        raise ValueError(f"sparse storage must be two-dimensional, got shape {np.shape(a)}")
    return sp.csc_array(a)


def _to_csr(a: Any) -> sp.csr_array:
    if getattr(a, "ndim", 2) != 2:
        raise ValueError(f"sparse storage must be two-dimensional, got shape {np.shape(a)}")
    return sp.csr_array(a)


def _from_coordinates(rows: Any, cols: Any, values: Any, shape: Any = None) -> sp.csc_array:
    rows = np.asarray(rows, dtype=np.intp)
    cols = np.asarray(cols, dtype=np.intp)
    coo = sp.coo_array((np.asarray(values), (rows, cols)), shape=shape)
    coo.sum_duplicates()
    return coo.tocsc()


# ----------------------------------------------------------------------
# elementwise and array functions
def _multiply(a: Any, b: Any) -> Any:
    if sp.issparse(a):
        return a.multiply(b)
    return b.multiply(a)


_BINARY: Dict[Any, Callable[[Any, Any], Any]] = {
    np.add: operator.add,
    np.subtract: operator.sub,
    np.multiply: _multiply,
    np.true_divide: operator.truediv,
    np.matmul: operator.matmul,
}

_UNARY: Dict[Any, Callable[[Any], Any]] = {
    np.negative: operator.neg,
    np.positive: operator.pos,
    np.absolute: abs,
    np.conjugate: lambda a: a.conj(),
}

# most specific first so that every overlap is covered when it is registered
_BINARY_PATTERNS = (
    (SparseStorage, SparseStorage),
    (SparseStorage, np.ndarray),
    (np.ndarray, SparseStorage),
    (SparseStorage, object),
    (object, SparseStorage),
)


def _reduction(name: str) -> Callable[..., Any]:
    def call(a: Any, axis: Any = None, **kwargs: Any) -> Any:
        if kwargs.get("keepdims"):
            raise TypeError(f"keepdims is not supported for sparse {name}")
        result = getattr(a, name)(axis=axis)
        if isinstance(result, np.matrix):
            return np.asarray(result).ravel()
        return result

    call.__name__ = f"_sparse_{name}"
    return call


_FUNCTIONS: Dict[Any, Callable[..., Any]] = {
    np.sum: _reduction("sum"),
    np.mean: _reduction("mean"),
    np.max: _reduction("max"),
    np.min: _reduction("min"),
    np.argmax: lambda a, axis=None: a.argmax(axis=axis),
    np.argmin: lambda a, axis=None: a.argmin(axis=axis),
    np.count_nonzero: lambda a, axis=None: a.count_nonzero() if axis is None else np.count_nonzero(a.toarray(), axis=axis),
    np.copy: lambda a, **kwargs: a.copy(),
    np.transpose: lambda a, axes=None: a.transpose(axes),
    np.reshape: lambda a, shape, **kwargs: a.reshape(shape),
    np.nonzero: lambda a: a.nonzero(),
    np.diagonal: lambda a, offset=0, **kwargs: a.diagonal(offset),
    np.shape: lambda a: a.shape,
    np.ndim: lambda a: a.ndim,
    np.size: lambda a, axis=None: int(np.prod(a.shape)) if axis is None else a.shape[axis],
}


def _similar(a: Any, dtype: Any = None, shape: Any = None) -> Any:
    target = a.shape if shape is None else tuple(shape)
    return sp.csc_array(target, dtype=a.dtype if dtype is None else dtype)


def _astype(a: Any, dtype: Any, copy: bool = True) -> Any:
    return a.astype(dtype, copy=copy)


# ----------------------------------------------------------------------
# linear algebra
def _mul_sparse_out(out: Any, a: Any, b: Any, alpha: Any = 1, beta: Any = 0) -> Any:
    if out.format not in _COMPRESSED_FORMATS:
        raise TypeError(f"in-place product needs csr or csc output storage, got {out.format}")
    product = a @ b
    if beta != 0:
        product = alpha * product + beta * out
    elif alpha != 1:
        product = alpha * product
    updated = sp.csr_array(product) if out.format == "csr" else sp.csc_array(product)
    updated = updated.astype(out.dtype, copy=False)
    out.data = updated.data
    out.indices = updated.indices
    out.indptr = updated.indptr
    return out


def _lu_sparse(a: Any) -> SparseLUFactorization:
    return SparseLUFactorization(spla.splu(sp.csc_array(a)), tuple(a.shape))


def _solve_sparse(a: Any, b: Any) -> Any:
    return spla.spsolve(sp.csc_array(a), b)


def _inv_sparse(a: Any) -> Any:
    return spla.inv(sp.csc_array(a))


def _adjoint_sparse(a: Any) -> Any:
    return a.conj().transpose()


def register_defaults(registry: RuleRegistry) -> None:
    registry.register("sparse", np.ndarray)(_to_csc)
    registry.register("sparse", SparseStorage)(_to_csc)
    registry.register("sparse_coo")(_from_coordinates)
    registry.register("to_csr", np.ndarray)(_to_csr)
    registry.register("to_csr", SparseStorage)(_to_csr)

    for ufunc, func in _BINARY.items():
        for pattern in _BINARY_PATTERNS:
            registry.register(ufunc, *pattern)(func)
    for ufunc, func in _UNARY.items():
        registry.register(ufunc, SparseStorage)(func)
    for array_function, func in _FUNCTIONS.items():
        registry.register(array_function, SparseStorage)(func)

    registry.register("similar", SparseStorage)(_similar)
    registry.register("astype", SparseStorage)(_astype)
    registry.register("mul", SparseStorage)(_mul_sparse_out)
    registry.register("lu", SparseStorage)(_lu_sparse)
    registry.register("solve", SparseStorage)(_solve_sparse)
    registry.register("inv", SparseStorage)(_inv_sparse)
    registry.register("adjoint", SparseStorage)(_adjoint_sparse)
    LOGGER.debug("Registered sparse rules for %d ufuncs", len(_BINARY) + len(_UNARY))
