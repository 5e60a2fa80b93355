import numpy as np
import pytest
from pytest import fixture

from seiqrdp.data import ObservedSeries
from seiqrdp.errors import ConfigurationError, ConsistencyError, HighRecoveryRateWarning
from seiqrdp.grid import build_time_grid
from seiqrdp.rates import RateForm
from seiqrdp.simulator import CompartmentSimulator


@fixture
def observed():
    return ObservedSeries(
        Q=[10, 15, 25, 40, 60],
        R=[0, 1, 3, 8, 15],
        D=[0, 0, 1, 2, 3],
    )


@fixture
def grid():
    return build_time_grid(np.arange(5, dtype=float), dt=0.1)


@fixture
def params():
    return np.array([0.01, 1.5, 0.5, 0.5, 0.1, 0.5, 2.0, 0.05, 0.05])


@fixture
def model(observed, grid):
    return CompartmentSimulator(observed, N=1000, E0=5, I0=5, grid=grid)


def test_initial_state_conserves_population(model):
    y0 = model.initial_state()

    assert y0.sum() == pytest.approx(1000.0)
    np.testing.assert_allclose(y0, [980.0, 5.0, 5.0, 10.0, 0.0, 0.0, 0.0])


def test_initial_state_without_recovered(grid):
    observed = ObservedSeries(Q=[10, 15, 25, 40, 60], R=None, D=[2, 2, 3, 4, 5])
    y0 = CompartmentSimulator(observed, N=1000, E0=5, I0=5, grid=grid).initial_state()

    assert y0[4] == 0.0
    assert y0[0] == pytest.approx(1000.0 - 10.0 - 2.0 - 5.0 - 5.0)


def test_population_too_small_is_inconsistent(observed, grid):
    model = CompartmentSimulator(observed, N=15, E0=5, I0=5, grid=grid)

    with pytest.raises(ConsistencyError, match="smaller than"):
        model.initial_state()


def test_non_finite_initial_state_is_inconsistent(observed, grid):
    model = CompartmentSimulator(observed, N=1000, E0=np.nan, I0=5, grid=grid)

    with pytest.raises(ConsistencyError, match="add up to the total population"):
        model.initial_state()


def test_population_is_conserved_along_the_trajectory(model, params):
    sim = model.simulate(params)
    total = sum(sim[c] for c in ("S", "E", "I", "Q", "R", "D", "P"))

    np.testing.assert_allclose(total, 1000.0, rtol=1e-10)
    assert sim["t"].size == 41


def test_zero_rates_keep_the_initial_state(model, observed):
    out = model(np.zeros(9))

    np.testing.assert_allclose(out[0], observed.Q[0])
    np.testing.assert_allclose(out[1], observed.R[0])
    np.testing.assert_allclose(out[2], observed.D[0])


def test_output_channels(model, params, grid):
    out = model(params)

    assert out.shape == (3, 5)
    assert model.residuals(params).shape == (15,)
    sim = model.simulate(params)
    np.testing.assert_allclose(out[0], np.interp(grid.t_target, sim["t"], sim["Q"]))


def test_two_channel_output_sums_quarantined_and_recovered(grid, params):
    with_r = ObservedSeries(Q=[10, 15, 25, 40, 60], R=[0, 1, 3, 8, 15], D=[0, 0, 1, 2, 3])
    no_r = ObservedSeries(Q=[10, 15, 25, 40, 60], R=[], D=[0, 0, 1, 2, 3])

    full = CompartmentSimulator(with_r, 1000, 5, 5, grid)
    reduced = CompartmentSimulator(no_r, 1000, 5, 5, grid)
    # R[0] is 0 in both, so the trajectories are the same
    out3 = full(params)
    out2 = reduced(params)

    assert out2.shape == (2, 5)
    np.testing.assert_allclose(out2[0], out3[0] + out3[1])
    np.testing.assert_allclose(out2[1], out3[2])


def test_sign_of_parameters_is_irrelevant(model, params):
    np.testing.assert_allclose(model(params), model(-params))


def test_repeated_calls_are_identical(model, params):
    np.testing.assert_array_equal(model(params), model(params))


def test_abnormal_recovery_rate_warns(model, params):
    params = params.copy()
    params[4:7] = [20.0, 1.0, 0.0]

    with pytest.warns(HighRecoveryRateWarning, match="abnormally high"):
        model.simulate(params)


def test_evaluates_selected_rate_forms(observed, grid, params):
    model = CompartmentSimulator(observed, 1000, 5, 5, grid, lambda_form=RateForm.EXPONENTIAL_OFFSET)
    sim = model.simulate(params)

    np.testing.assert_allclose(sim["lambda"], 0.1 + np.exp(-0.5 * (grid.t + 2.0)))
    np.testing.assert_allclose(sim["kappa"], 0.05 * np.exp(-0.05 * grid.t))


def test_length_mismatch_is_rejected(observed):
    with pytest.raises(ConfigurationError, match="samples"):
        CompartmentSimulator(observed, 1000, 5, 5, build_time_grid(np.arange(4.0), dt=0.1))


def test_wrong_parameter_count_is_rejected(model):
    with pytest.raises(ConfigurationError, match="expected 9 parameters"):
        model(np.ones(8))
