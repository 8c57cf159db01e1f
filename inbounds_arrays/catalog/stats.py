"""Descriptive statistics forwarding to :mod:`scipy.stats`."""

from __future__ import annotations

import functools
from typing import Any, Callable

import numpy as np
import scipy.stats

from ..dispatch import RuleRegistry, forward

STATS_FUNCTIONS = (
    "zscore", "rankdata", "skew", "kurtosis", "sem", "iqr", "entropy",
    "moment", "describe", "variation", "mode",
)


def _forwarding(func: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(func)
    def call(*args: Any, **kwargs: Any) -> Any:
        return forward(func, args, kwargs)

    return call


zscore = _forwarding(scipy.stats.zscore)
rankdata = _forwarding(scipy.stats.rankdata)
skew = _forwarding(scipy.stats.skew)
kurtosis = _forwarding(scipy.stats.kurtosis)
sem = _forwarding(scipy.stats.sem)
iqr = _forwarding(scipy.stats.iqr)
entropy = _forwarding(scipy.stats.entropy)
moment = _forwarding(scipy.stats.moment)
describe = _forwarding(scipy.stats.describe)
variation = _forwarding(scipy.stats.variation)
mode = _forwarding(scipy.stats.mode)


def register_defaults(registry: RuleRegistry) -> None:
    for name in STATS_FUNCTIONS:
        func = getattr(scipy.stats, name)
        registry.register(func, np.ndarray)(func)
