from __future__ import annotations

import numpy as np
import pytest

import inbounds_arrays as ia
from inbounds_arrays import InboundsArray, LUFactorization


@pytest.fixture
def system():
    a = InboundsArray(np.array([[4.0, 1.0], [2.0, 3.0]]))
    b = InboundsArray(np.array([1.0, 2.0]))
    return a, b


def test_three_argument_mul_writes_into_out(system):
    a, _ = system
    out = InboundsArray(np.zeros((2, 2)))
    assert ia.mul(out, a, a) is out
    assert np.allclose(out.toarray(), a.toarray() @ a.toarray())


def test_five_argument_mul_scales_and_accumulates(system):
    a, _ = system
    out = InboundsArray(np.ones((2, 2)))
    ia.mul(out, a, a, 2.0, 3.0)
    expected = 2.0 * (a.toarray() @ a.toarray()) + 3.0
    assert np.allclose(out.toarray(), expected)


def test_mul_into_plain_storage_wraps_it(system):
    a, b = system
    out = np.zeros(2)
    result = ia.mul(out, a, b)
    assert isinstance(result, InboundsArray)
    assert result.parent is out
    assert np.allclose(out, a.toarray() @ b.toarray())


def test_lu_returns_unwrapped_handle(system):
    a, b = system
    factorization = ia.lu(a)
    assert isinstance(factorization, LUFactorization)
    assert not ia.is_wrapped(factorization)
    assert factorization.shape == (2, 2)

    x = factorization.solve(b)
    assert isinstance(x, InboundsArray)
    assert np.allclose(a.toarray() @ x.toarray(), b.toarray())
    assert isinstance(ia.solve(factorization, b), InboundsArray)


def test_ldiv_writes_solution_into_out(system):
    a, b = system
    factorization = ia.lu(a)
    out = InboundsArray(np.zeros(2))
    assert ia.ldiv(out, factorization, b) is out
    assert np.allclose(a.toarray() @ out.toarray(), b.toarray())


def test_solve_and_inverse(system):
    a, b = system
    x = ia.solve(a, b)
    assert isinstance(x, InboundsArray)
    assert np.allclose(a.toarray() @ x.toarray(), b.toarray())

    inverse = ia.inv(a)
    assert isinstance(inverse, InboundsArray)
    assert np.allclose(inverse.toarray() @ a.toarray(), np.eye(2))
    assert isinstance(np.linalg.inv(a), InboundsArray)
    assert np.isclose(np.linalg.det(a), 10.0)


def test_transpose_and_adjoint():
    z = InboundsArray(np.array([[1 + 1j, 2.0], [3.0, 4 - 2j]]))
    transposed = ia.transpose(z)
    assert isinstance(transposed, InboundsArray)
    assert transposed[0, 1] == 3.0

    adjoint = ia.adjoint(z)
    assert isinstance(adjoint, InboundsArray)
    assert np.allclose(adjoint.toarray(), z.toarray().conj().T)

    row = ia.adjoint(InboundsArray(np.array([1j, 2.0])))
    assert row.shape == (1, 2)
    assert row[0, 0] == -1j


def test_singular_solve_propagates_backend_error():
    singular = InboundsArray(np.zeros((2, 2)))
    with pytest.raises(np.linalg.LinAlgError):
        ia.solve(singular, np.ones(2))
