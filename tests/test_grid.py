import numpy as np
import pandas as pd
import pytest

from seiqrdp.errors import ConfigurationError
from seiqrdp.grid import build_time_grid


def test_daily_timestamps_to_day_axis():
    dates = pd.date_range("2020-03-01", periods=5, freq="D")
    grid = build_time_grid(dates, dt=0.1)

    np.testing.assert_allclose(grid.t_target, [0, 1, 2, 3, 4])
    assert grid.t.size == 41
    assert grid.n_steps == 40
    assert grid.t[0] == 0.0
    assert grid.t[-1] == pytest.approx(4.0)
    np.testing.assert_allclose(np.diff(grid.t), 0.1)


def test_string_dates_are_parsed():
    grid = build_time_grid(["2020-04-01", "2020-04-02", "2020-04-04"], dt=0.5)

    np.testing.assert_allclose(grid.t_target, [0, 1, 3])
    assert grid.t.size == 7


def test_numeric_days_are_rounded_to_the_step():
    grid = build_time_grid([3.0, 4.04, 5.01], dt=0.1)

    np.testing.assert_allclose(grid.t_target, [0.0, 1.0, 2.0])


def test_observation_times_fall_on_the_grid():
    grid = build_time_grid([0.0, 0.8, 2.1, 3.7], dt=0.25)

    for tk in grid.t_target:
        assert np.min(np.abs(grid.t - tk)) < 1e-9


@pytest.mark.parametrize("shape", [(5, 1), (1, 5)])
def test_row_and_column_vectors_are_accepted(shape):
    time = np.arange(5, dtype=float).reshape(shape)
    grid = build_time_grid(time, dt=0.1)

    assert grid.n_obs == 5


def test_matrix_time_input_is_rejected():
    with pytest.raises(ConfigurationError, match="Time should be a vector"):
        build_time_grid(np.zeros((2, 3)), dt=0.1)


def test_non_increasing_time_is_rejected():
    with pytest.raises(ConfigurationError, match="strictly increasing"):
        build_time_grid([0.0, 1.0, 1.0, 2.0], dt=0.1)


def test_non_positive_step_is_rejected():
    with pytest.raises(ConfigurationError, match="dt must be positive"):
        build_time_grid([0.0, 1.0], dt=0.0)
