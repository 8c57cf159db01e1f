"""Linear algebra entry points and their dense rules.

``mul`` is the in-place product ``out = alpha * a @ b + beta * out``; the
factorization objects returned by :func:`lu` are handles and are never
wrapped, but solving with them returns wrapped results for wrapped
right-hand sides.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Tuple

import numpy as np
import scipy.linalg

from ..dispatch import RuleRegistry, forward


class Factorization:
    """Base class of the factorization handles produced by :func:`lu`."""

    shape: Tuple[int, ...]

    def solve(self, b: Any) -> Any:
        return forward("lu_solve", (self, b))


@dataclass(frozen=True, eq=False)
class LUFactorization(Factorization):
    """Dense LU factors in the packed LAPACK ``getrf`` layout."""

    lu: np.ndarray
    piv: np.ndarray
    shape: Tuple[int, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", tuple(self.lu.shape))


@dataclass(frozen=True, eq=False)
class SparseLUFactorization(Factorization):
    """Sparse LU factors computed by SuperLU."""

    factor: Any
    shape: Tuple[int, ...]


def mul(out: Any, a: Any, b: Any, alpha: Any = 1, beta: Any = 0) -> Any:
    """Compute ``alpha * a @ b + beta * out`` into ``out`` and return ``out``."""

    return forward("mul", (out, a, b, alpha, beta))


def lu(a: Any) -> Factorization:
    return forward("lu", (a,))


def ldiv(out: Any, factorization: Factorization, b: Any) -> Any:
    """Solve with ``factorization`` for right-hand side ``b`` and store the result in ``out``."""

    return forward("ldiv", (out, factorization, b))


def solve(a: Any, b: Any) -> Any:
    """Solve ``a @ x = b``; ``a`` may be a matrix or a factorization."""

    if isinstance(a, Factorization):
        return a.solve(b)
    return forward("solve", (a, b))


def inv(a: Any) -> Any:
    return forward("inv", (a,))


def transpose(a: Any) -> Any:
    return np.transpose(a)


def adjoint(a: Any) -> Any:
    """Conjugate transpose; one-dimensional inputs become a single row."""

    return forward("adjoint", (a,))


# ----------------------------------------------------------------------
# dense rules
def _mul_dense_out(out: np.ndarray, a: Any, b: Any, alpha: Any = 1, beta: Any = 0) -> np.ndarray:
    product = a @ b
    if hasattr(product, "toarray"):
        product = product.toarray()
    if alpha != 1:
        product = alpha * product
    if beta == 0:
        out[...] = product
    else:
        out *= beta
        out += product
    return out


def _lu_dense(a: np.ndarray) -> LUFactorization:
    lu_factors, piv = scipy.linalg.lu_factor(a)
    return LUFactorization(lu_factors, piv)


def _lu_solve_dense(factorization: LUFactorization, b: Any) -> np.ndarray:
    return scipy.linalg.lu_solve((factorization.lu, factorization.piv), np.asarray(b))


def _lu_solve_sparse(factorization: SparseLUFactorization, b: Any) -> np.ndarray:
    return factorization.factor.solve(np.asarray(b))


def _ldiv_dense_out(out: np.ndarray, factorization: Factorization, b: Any) -> np.ndarray:
    out[...] = solve(factorization, b)
    return out


def _solve_dense(a: np.ndarray, b: Any) -> np.ndarray:
    return np.linalg.solve(a, np.asarray(b))


def _adjoint_dense(a: np.ndarray) -> np.ndarray:
    if a.ndim == 1:
        return a.conj().reshape(1, -1)
    return np.swapaxes(a.conj(), -1, -2)


def register_defaults(registry: RuleRegistry) -> None:
    registry.register("mul", np.ndarray)(_mul_dense_out)
    registry.register("lu", np.ndarray)(_lu_dense)
    registry.register("lu_solve", LUFactorization)(_lu_solve_dense)
    registry.register("lu_solve", SparseLUFactorization)(_lu_solve_sparse)
    registry.register("ldiv", np.ndarray, Factorization)(_ldiv_dense_out)
    registry.register("solve", np.ndarray)(_solve_dense)
    registry.register("inv", np.ndarray)(np.linalg.inv)
    registry.register("adjoint", np.ndarray)(_adjoint_dense)
