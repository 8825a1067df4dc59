#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
The affine-invariant ensemble sampler using the walk move of
Goodman & Weare (2010).

"""

import warnings
import numpy as np

from .ensemble import WalkerSet, TransitionResult
from .proposals import choose_walkers, mean_walkers, propose_ensemble_walk
from .utils import LogDensity, get_random_generator

__all__ = ["WalkMoveKernel", "acceptance_probability"]


def acceptance_probability(logp_new, logp_old):
    """
    Metropolis acceptance probability ``min(1, exp(logp_new - logp_old))``.

    Proposals with a NaN or ``-inf`` log-density are never accepted. A
    comparison that is undefined otherwise (``+inf`` against ``+inf``, or a
    NaN current state) is resolved in favour of the proposal.

    Parameters
    ----------
    logp_new : float or `~numpy.ndarray`
        ln(density) of the proposed points.
    logp_old : float or `~numpy.ndarray`
        ln(density) of the current points.

    Returns
    -------
    alpha : float or `~numpy.ndarray`
        Acceptance probabilities in [0, 1].
    """
    logp_new = np.asarray(logp_new, dtype=float)
    logp_old = np.asarray(logp_old, dtype=float)
    with np.errstate(invalid='ignore', over='ignore'):
        alpha = np.exp(np.minimum(logp_new - logp_old, 0.))
    alpha = np.where(np.isnan(alpha), 1., alpha)
    alpha = np.where(np.isnan(logp_new) | np.isneginf(logp_new), 0., alpha)
    return alpha[()]


class WalkMoveKernel:
    """
    Ensemble transition kernel based on the walk move.

    Each walker ``i`` is moved to
    ``x_i + sum_j z_j (x_j - mean(x_S))`` where ``S`` is a random non-empty
    subset of the other walkers and ``z_j ~ N(0, 1)``, and the move is
    accepted with the Metropolis probability. All walkers are updated from
    the same snapshot.

    Random numbers are drawn from a single stream in a fixed order: for
    walker ``0, 1, ..., N-1`` in turn, the subset selection (``N - 1``
    Bernoulli draws per attempt), then one normal draw per selected walker
    in ascending index order, then one uniform draw for the acceptance
    test. The uniform is drawn even when the move is certain to be
    accepted or rejected. Evaluating the density draws no random numbers,
    so the trajectory does not depend on whether a pool is used.

    A proposal whose log-density is NaN is treated as having a
    log-density of ``-inf``: it is rejected and a `RuntimeWarning` is
    issued.

    Parameters
    ----------
    log_density : function
        Function returning ln(density) for a parameter vector. It may
        return non-finite values outside of the support.
    rstate : `~numpy.random.Generator`, optional
        `~numpy.random.Generator` instance. The kernel draws from it but
        does not own it. If not given, a new generator is created.
    pool : user-provided pool, optional
        Use this pool of workers to evaluate the log-density of the
        proposals. The pool must provide a ``map`` method.
    max_attempts : int, optional
        Maximum number of attempts to select a non-empty set of walkers.
        Default is `10000`.
    """

    def __init__(self, log_density, rstate=None, pool=None,
                 max_attempts=10000):
        self.name = "Ensemble Sampler using Walk Move"
        if isinstance(log_density, LogDensity):
            self.log_density = log_density
        else:
            self.log_density = LogDensity(log_density, pool=pool)
        if rstate is None:
            rstate = get_random_generator()
        self.rstate = rstate
        self.max_attempts = max_attempts

    @property
    def ncall(self):
        """ Number of log-density evaluations performed so far """
        return self.log_density.ncall

    def initialize_ensemble(self, x0, nwalkers, scale=1e-3, n_attempts=100):
        """
        Create an initial ensemble by scattering walkers around ``x0``.

        Walkers are drawn from a normal distribution centred on ``x0``
        until all of them have a finite log-density.

        Parameters
        ----------
        x0 : `~numpy.ndarray` with shape (ndim,)
            Centre of the initial ensemble.
        nwalkers : int
            Number of walkers.
        scale : float, optional
            Standard deviation of the scatter. Default is `1e-3`.
        n_attempts : int, optional
            Number of rounds of redrawing walkers with a non-finite
            log-density. Default is `100`.

        Returns
        -------
        walkers : `~ensemblecore.ensemble.WalkerSet`
            The initial ensemble.
        """
        x0 = np.atleast_1d(np.asarray(x0, dtype=float))
        ndim = x0.size
        if nwalkers < 2:
            raise ValueError("The ensemble needs at least two walkers")
        positions = np.empty((nwalkers, ndim))
        logp = np.full(nwalkers, -np.inf)
        good = np.zeros(nwalkers, dtype=bool)
        for _ in range(n_attempts):
            bad = np.nonzero(~good)[0]
            cur_x = x0 + scale * self.rstate.normal(size=(len(bad), ndim))
            cur_logp = self.log_density.map(cur_x)
            finite = np.isfinite(cur_logp)
            positions[bad[finite]] = cur_x[finite]
            logp[bad[finite]] = cur_logp[finite]
            good[bad[finite]] = True
            if good.all():
                break
        else:
            raise RuntimeError(
                f"After {n_attempts} attempts, we could not find "
                f"{nwalkers} walkers with a valid log-density! Please "
                "check the starting point and/or the log-density.")
        if np.ptp(logp) == 0:
            warnings.warn(
                'All the initial log-density values are the same. '
                'The density is likely flat around the starting point.',
                RuntimeWarning)
        return WalkerSet(positions, logp)

    def propose(self, index, positions):
        """
        Propose a new position for walker ``index`` given the positions of
        the whole ensemble.
        """
        choices = choose_walkers(index,
                                 len(positions),
                                 self.rstate,
                                 max_attempts=self.max_attempts)
        center_of_mass = mean_walkers(choices, positions)
        return propose_ensemble_walk(positions[index],
                                     positions[choices],
                                     self.rstate,
                                     center_of_mass=center_of_mass)

    def step(self, walkers):
        """
        Advance every walker of the ensemble once.

        Parameters
        ----------
        walkers : `~ensemblecore.ensemble.WalkerSet`
            The current generation. It is not modified.

        Returns
        -------
        result : `~ensemblecore.ensemble.TransitionResult`
            The new generation, the acceptance probability and acceptance
            outcome of every walker, and the number of log-density
            evaluations used.
        """
        positions = walkers.positions
        nwalkers = walkers.nwalkers
        proposals = np.empty_like(positions)
        uniforms = np.empty(nwalkers)
        for i in range(nwalkers):
            proposals[i] = self.propose(i, positions)
            uniforms[i] = self.rstate.uniform(0, 1)

        ncall0 = self.ncall
        logp_new = self.log_density.map(proposals)
        nan = np.isnan(logp_new)
        if nan.any():
            warnings.warn(
                f"The log-density of {nan.sum()} proposed point(s) is NaN. "
                "These proposals are rejected.", RuntimeWarning)
            logp_new[nan] = -np.inf

        accept_prob = acceptance_probability(logp_new, walkers.logp)
        accepted = (uniforms <= accept_prob) & (accept_prob > 0)
        new_walkers = WalkerSet(
            np.where(accepted[:, np.newaxis], proposals, positions),
            np.where(accepted, logp_new, walkers.logp))
        return TransitionResult(walkers=new_walkers,
                                accept_prob=accept_prob,
                                accepted=accepted,
                                ncall=self.ncall - ncall0)

    def transition(self, walkers):
        """
        Return the next generation of the ensemble.

        Equivalent to ``step(walkers).walkers``.
        """
        return self.step(walkers).walkers

    def write_metric(self, file=None):
        """
        Write the tuning parameters of the kernel to ``file``. The walk
        move has none. Nothing is written if ``file`` is None.
        """
        if file is None:
            return
        file.write("# No free parameters for walk move ensemble sampler\n")
