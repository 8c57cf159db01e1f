"""Reusable transform plans built on :mod:`scipy.fft`.

A plan records the transform kind, shape and axes once.  Applying it to a
wrapped array returns a wrapped result; in-place plans write into their input
and hand back the same wrapper.  Real-to-real kinds use the unnormalised
FFTW conventions, which match SciPy's ``norm=None`` DCT and DST.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, Tuple

import numpy as np
import scipy.fft

from ..core import unwrap
from ..dispatch import RuleRegistry, forward

# FFTW real-to-real kinds as (family, type)
REDFT00 = ("dct", 1)
REDFT10 = ("dct", 2)
REDFT01 = ("dct", 3)
REDFT11 = ("dct", 4)
RODFT00 = ("dst", 1)
RODFT10 = ("dst", 2)
RODFT01 = ("dst", 3)
RODFT11 = ("dst", 4)

_R2R_KINDS = (REDFT00, REDFT10, REDFT01, REDFT11, RODFT00, RODFT10, RODFT01, RODFT11)


@dataclass(frozen=True)
class FFTPlan:
    """Transform plan; call it (or use ``plan @ x``) to apply."""

    kind: str
    shape: Tuple[int, ...]
    axes: Tuple[int, ...] | None = None
    inplace: bool = False
    r2r: Tuple[str, int] | None = None

    def __call__(self, x: Any) -> Any:
        return forward("fft_plan_apply", (self, x))

    def __matmul__(self, x: Any) -> Any:
        return self(x)

    @property
    def inverse(self) -> "FFTPlan":
        if self.kind == "fft":
            return FFTPlan("ifft", self.shape, self.axes, self.inplace)
        if self.kind == "ifft":
            return FFTPlan("fft", self.shape, self.axes, self.inplace)
        raise ValueError("real-to-real plans have no stored inverse")


def _normalize_axes(axes: int | Sequence[int] | None) -> Tuple[int, ...] | None:
    if axes is None:
        return None
    if isinstance(axes, int):
        return (axes,)
    return tuple(int(axis) for axis in axes)


def _shape_of(a: Any) -> Tuple[int, ...]:
    return tuple(int(dim) for dim in np.shape(unwrap(a)))


def plan_fft(a: Any, axes: int | Sequence[int] | None = None) -> FFTPlan:
    return FFTPlan("fft", _shape_of(a), _normalize_axes(axes))


def plan_fft_inplace(a: Any, axes: int | Sequence[int] | None = None) -> FFTPlan:
    return FFTPlan("fft", _shape_of(a), _normalize_axes(axes), inplace=True)


def plan_ifft(a: Any, axes: int | Sequence[int] | None = None) -> FFTPlan:
    return FFTPlan("ifft", _shape_of(a), _normalize_axes(axes))


def plan_r2r(a: Any, kind: Tuple[str, int], axes: int | Sequence[int] | None = None) -> FFTPlan:
    if tuple(kind) not in _R2R_KINDS:
        raise ValueError(f"unknown real-to-real kind {kind!r}")
    return FFTPlan("r2r", _shape_of(a), _normalize_axes(axes), r2r=tuple(kind))


def plan_r2r_inplace(a: Any, kind: Tuple[str, int], axes: int | Sequence[int] | None = None) -> FFTPlan:
    plan = plan_r2r(a, kind, axes)
    return FFTPlan("r2r", plan.shape, plan.axes, inplace=True, r2r=plan.r2r)


def _execute(plan: FFTPlan, x: np.ndarray) -> np.ndarray:
    if plan.kind == "fft":
        return scipy.fft.fftn(x, axes=plan.axes)
    if plan.kind == "ifft":
        return scipy.fft.ifftn(x, axes=plan.axes)
    family, kind = plan.r2r
    transform = scipy.fft.dctn if family == "dct" else scipy.fft.dstn
    return transform(x, type=kind, axes=plan.axes)


def _apply_dense(plan: FFTPlan, x: np.ndarray) -> np.ndarray:
    if tuple(x.shape) != plan.shape:
        raise ValueError(f"plan for shape {plan.shape} applied to array of shape {tuple(x.shape)}")
    result = _execute(plan, x)
    if not plan.inplace:
        return result
    if np.iscomplexobj(result) and not np.iscomplexobj(x):
        raise TypeError("in-place complex transforms need complex input storage")
    x[...] = result
    return x


def register_defaults(registry: RuleRegistry) -> None:
    registry.register("fft_plan_apply", FFTPlan, np.ndarray)(_apply_dense)
