import numpy as np
import pytest

from seiqrdp.rates import RateForm, RateFunction, evaluate_rate


def test_logistic_midpoint_is_half_amplitude():
    lam = RateFunction(RateForm.LOGISTIC, (0.3, 0.5, 12.0))

    assert lam(12.0) == pytest.approx(0.15)
    assert lam(1e4) == pytest.approx(0.3)
    assert lam(-1e4) == 0.0


def test_exponential_offset():
    t = np.array([0.0, 1.0, 5.0])
    out = evaluate_rate(RateForm.EXPONENTIAL_OFFSET, (0.05, 0.2, 3.0), t)

    np.testing.assert_allclose(out, 0.05 + np.exp(-0.2 * (t + 3.0)))


def test_exponential_decay():
    kappa = RateFunction(RateForm.EXPONENTIAL_DECAY, [0.04, 0.1])

    assert kappa(0.0) == pytest.approx(0.04)
    assert kappa(10.0) == pytest.approx(0.04 * np.exp(-1.0))


@pytest.mark.parametrize(
    "form, n", [(RateForm.LOGISTIC, 3), (RateForm.EXPONENTIAL_OFFSET, 3), (RateForm.EXPONENTIAL_DECAY, 2)]
)
def test_parameter_count(form, n):
    assert form.n_params == n
    with pytest.raises(ValueError, match="parameters"):
        RateFunction(form, tuple(range(n + 1)))


def test_with_params_keeps_the_form():
    lam = RateFunction(RateForm.EXPONENTIAL_OFFSET, (0.1, 0.1, 1.0))
    refit = lam.with_params(np.array([0.2, 0.3, 4.0]))

    assert refit.form is RateForm.EXPONENTIAL_OFFSET
    assert refit.params == (0.2, 0.3, 4.0)
    assert refit.as_dict() == {"form": "exponential_offset", "params": [0.2, 0.3, 4.0]}


@pytest.mark.filterwarnings("error")
@pytest.mark.parametrize(
    "form, a", [(RateForm.EXPONENTIAL_OFFSET, (0.1, 2.0, 0.0)), (RateForm.EXPONENTIAL_DECAY, (0.1, 2.0))]
)
def test_exponential_overflow_gives_inf_without_warning(form, a):
    out = evaluate_rate(form, a, np.array([-1e4, 0.0]))

    assert np.isposinf(out[0])
    assert np.isfinite(out[1])
