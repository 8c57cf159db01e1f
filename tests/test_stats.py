from __future__ import annotations

import numpy as np
import scipy.stats

from inbounds_arrays import InboundsArray
from inbounds_arrays.catalog import stats

DATA = np.array([2.0, 4.0, 4.0, 5.0, 7.0, 9.0])


def test_array_results_are_wrapped():
    scores = stats.zscore(InboundsArray(DATA))
    assert isinstance(scores, InboundsArray)
    assert np.allclose(scores.toarray(), scipy.stats.zscore(DATA))
    ranks = stats.rankdata(InboundsArray(DATA))
    assert isinstance(ranks, InboundsArray)
    assert ranks.tolist() == [1.0, 2.5, 2.5, 4.0, 5.0, 6.0]


def test_scalar_results_stay_scalars():
    value = stats.skew(InboundsArray(DATA))
    assert not isinstance(value, InboundsArray)
    assert np.isclose(value, scipy.stats.skew(DATA))
    assert np.isclose(stats.iqr(InboundsArray(DATA)), scipy.stats.iqr(DATA))


def test_result_objects_keep_their_type():
    table = InboundsArray(np.vstack([DATA, DATA * 2]))
    summary = stats.describe(table, axis=1)
    assert type(summary).__name__ == "DescribeResult"
    assert summary.nobs == 6
    assert isinstance(summary.mean, InboundsArray)
    assert np.allclose(summary.mean.toarray(), [DATA.mean(), 2 * DATA.mean()])


def test_plain_inputs_give_plain_outputs():
    assert isinstance(stats.zscore(DATA), np.ndarray)
