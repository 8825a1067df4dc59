import io
import numpy as np
import numpy.testing as npt
import pytest
import ensemblecore
from ensemblecore import WalkMoveKernel, WalkerSet
from ensemblecore.walk import acceptance_probability
from ensemblecore.ensemble import print_fn
from utils import get_rstate, get_printing

printing = get_printing()

nwalkers = 4
ndim = 2


def loglike_quad(x):
    return -0.5 * np.sum(x**2)


def loglike_nan(x):
    return np.nan


def loglike_neginf(x):
    return -np.inf


def loglike_flat(x):
    return 0.


def loglike_halfplane(x):
    if x[0] < 0:
        return -np.inf
    return -0.5 * np.sum(x**2)


def get_walkers(seed=1, loglike=loglike_quad):
    positions = get_rstate(seed).normal(size=(nwalkers, ndim))
    return WalkerSet.from_positions(positions, loglike)


def reference_transition(positions, logp, loglike, rstate):
    # replay of the walk move with explicit loops, drawing the random
    # numbers in the documented order
    nw = len(positions)
    new_positions = positions.copy()
    new_logp = logp.copy()
    for i in range(nw):
        while True:
            coins = rstate.binomial(1, 0.5, size=nw - 1)
            if coins.any():
                break
        others = [j for j in range(nw) if j != i]
        sel = [others[k] for k in range(nw - 1) if coins[k]]
        mu = positions[sel].mean(axis=0)
        z = rstate.normal(0, 1, len(sel))
        prop = positions[i].copy()
        for zj, j in zip(z, sel):
            prop += zj * (positions[j] - mu)
        u = rstate.uniform(0, 1)
        lp = loglike(prop)
        if u <= min(1., np.exp(lp - logp[i])):
            new_positions[i] = prop
            new_logp[i] = lp
    return new_positions, new_logp


def test_transition_regression():
    # N=4 walkers in 2-d with a fixed seed reproduce the replayed trajectory
    walkers = get_walkers()
    kernel = WalkMoveKernel(loglike_quad, rstate=get_rstate(42))
    new = kernel.transition(walkers)
    ref_positions, ref_logp = reference_transition(
        np.array(walkers.positions), np.array(walkers.logp), loglike_quad,
        get_rstate(42))
    npt.assert_allclose(new.positions, ref_positions, rtol=1e-12, atol=1e-12)
    npt.assert_allclose(new.logp, ref_logp, rtol=1e-12, atol=1e-12)


def test_transition_reproducible():
    walkers = get_walkers()
    kernel1 = WalkMoveKernel(loglike_quad, rstate=get_rstate(7))
    kernel2 = WalkMoveKernel(loglike_quad, rstate=get_rstate(7))
    w1, w2 = walkers, walkers
    for _ in range(10):
        w1 = kernel1.transition(w1)
        w2 = kernel2.transition(w2)
    npt.assert_array_equal(w1.positions, w2.positions)
    npt.assert_array_equal(w1.logp, w2.logp)


def test_snapshot_untouched():
    walkers = get_walkers()
    positions = np.array(walkers.positions)
    logp = np.array(walkers.logp)
    kernel = WalkMoveKernel(loglike_quad, rstate=get_rstate())
    for _ in range(5):
        new = kernel.transition(walkers)
        assert new is not walkers
    npt.assert_array_equal(walkers.positions, positions)
    npt.assert_array_equal(walkers.logp, logp)


def test_logp_consistent():
    # stored log-densities always match the positions
    walkers = get_walkers()
    kernel = WalkMoveKernel(loglike_quad, rstate=get_rstate())
    for _ in range(20):
        walkers = kernel.transition(walkers)
        for x, lp in zip(walkers.positions, walkers.logp):
            assert lp == loglike_quad(x)


def test_step_result():
    walkers = get_walkers()
    kernel = WalkMoveKernel(loglike_quad, rstate=get_rstate())
    result = kernel.step(walkers)
    assert isinstance(result, ensemblecore.TransitionResult)
    assert result.ncall == nwalkers
    assert kernel.ncall == nwalkers
    assert np.all((result.accept_prob >= 0) & (result.accept_prob <= 1))
    # a walker can only move if its proposal was accepted
    moved = np.any(result.walkers.positions != walkers.positions, axis=1)
    assert np.all(result.accepted[moved])
    npt.assert_array_equal(result.walkers.logp[~result.accepted],
                           walkers.logp[~result.accepted])
    buf = io.StringIO()
    print_fn(result, 1, file=buf)
    assert buf.getvalue().startswith('iter: 1 |')
    if printing:
        print_fn(result, 1)


def test_acceptance_probability():
    rstate = get_rstate()
    logp_old = rstate.normal(size=1000) * 10
    logp_new = rstate.normal(size=1000) * 10
    alpha = acceptance_probability(logp_new, logp_old)
    assert np.all((alpha >= 0) & (alpha <= 1))
    npt.assert_array_equal(alpha[logp_new >= logp_old], 1.)
    worse = logp_new < logp_old
    npt.assert_allclose(alpha[worse], np.exp(logp_new - logp_old)[worse])


def test_acceptance_probability_nonfinite():
    assert acceptance_probability(np.nan, 0.) == 0
    assert acceptance_probability(-np.inf, 0.) == 0
    assert acceptance_probability(-np.inf, -np.inf) == 0
    assert acceptance_probability(0., -np.inf) == 1
    assert acceptance_probability(np.inf, 0.) == 1
    assert acceptance_probability(np.inf, np.inf) == 1
    assert acceptance_probability(1., 1.) == 1


def test_nan_rejected():
    # NaN log-densities are treated as -inf and always rejected
    walkers = get_walkers()
    kernel = WalkMoveKernel(loglike_nan, rstate=get_rstate())
    with pytest.warns(RuntimeWarning):
        result = kernel.step(walkers)
    assert not result.accepted.any()
    npt.assert_array_equal(result.accept_prob, 0.)
    npt.assert_array_equal(result.walkers.positions, walkers.positions)
    npt.assert_array_equal(result.walkers.logp, walkers.logp)


def test_uniform_always_drawn():
    # the random stream advances by the same amount whatever the outcome
    walkers = get_walkers()
    rstate1 = get_rstate(3)
    rstate2 = get_rstate(3)
    WalkMoveKernel(loglike_flat, rstate=rstate1).transition(walkers)
    WalkMoveKernel(loglike_neginf, rstate=rstate2).transition(walkers)
    assert rstate1.bit_generator.state == rstate2.bit_generator.state


def test_out_of_support_rejected():
    walkers = WalkerSet.from_positions(
        np.abs(get_rstate().normal(size=(8, ndim))), loglike_halfplane)
    kernel = WalkMoveKernel(loglike_halfplane, rstate=get_rstate())
    for _ in range(50):
        walkers = kernel.transition(walkers)
        assert np.all(walkers.positions[:, 0] >= 0)
        assert np.all(np.isfinite(walkers.logp))


def test_initialize_ensemble():
    kernel = WalkMoveKernel(loglike_halfplane, rstate=get_rstate())
    walkers = kernel.initialize_ensemble(np.zeros(ndim), 10, scale=1.)
    assert walkers.nwalkers == 10
    assert walkers.ndim == ndim
    assert np.all(np.isfinite(walkers.logp))
    assert np.all(walkers.positions[:, 0] >= 0)


def test_initialize_ensemble_fail():
    kernel = WalkMoveKernel(loglike_neginf, rstate=get_rstate())
    with pytest.raises(RuntimeError):
        kernel.initialize_ensemble(np.zeros(ndim), 4, n_attempts=5)


def test_initialize_ensemble_flat():
    kernel = WalkMoveKernel(loglike_flat, rstate=get_rstate())
    with pytest.warns(RuntimeWarning):
        kernel.initialize_ensemble(np.zeros(ndim), 4)


def test_write_metric():
    kernel = WalkMoveKernel(loglike_quad, rstate=get_rstate())
    kernel.write_metric()
    kernel.write_metric(None)
    buf = io.StringIO()
    kernel.write_metric(buf)
    assert buf.getvalue() == (
        "# No free parameters for walk move ensemble sampler\n")
    assert kernel.name == "Ensemble Sampler using Walk Move"


def test_gaussian_moments():
    # sampling a correlated gaussian recovers its mean and covariance
    cov = np.array([[1., 0.8], [0.8, 2.]])
    icov = np.linalg.inv(cov)

    def loglike_gau(x):
        return -0.5 * x @ icov @ x

    rstate = get_rstate()
    kernel = WalkMoveKernel(loglike_gau, rstate=rstate)
    walkers = kernel.initialize_ensemble(np.zeros(ndim), 8, scale=1.)
    samples = []
    for it in range(3000):
        walkers = kernel.transition(walkers)
        if it >= 500:
            samples.append(walkers.positions)
    samples = np.concatenate(samples)
    assert np.all(np.abs(samples.mean(axis=0)) < 0.25)
    ratio = np.cov(samples.T) / cov
    assert np.all((ratio > 0.7) & (ratio < 1.3))
