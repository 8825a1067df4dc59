#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Proposal primitives of the ensemble walk move used by
:class:`~ensemblecore.walk.WalkMoveKernel`.

"""

import numpy as np

__all__ = ["choose_walkers", "mean_walkers", "propose_ensemble_walk"]


def choose_walkers(index, nwalkers, rstate, max_attempts=10000):
    """
    Select a random non-empty complementary set of walkers.

    Every walker other than ``index`` is included independently with
    probability 1/2, in ascending index order. Empty selections are
    discarded and the whole selection is redrawn, which takes
    ``1 / (1 - 2**-(nwalkers - 1))`` attempts on average.

    Parameters
    ----------
    index : int
        The walker being moved. It is never selected.
    nwalkers : int
        Number of walkers in the ensemble.
    rstate : `~numpy.random.Generator`
        `~numpy.random.Generator` instance.
    max_attempts : int, optional
        Number of selections drawn before giving up.

    Returns
    -------
    choices : `~numpy.ndarray` of int
        Indices of the selected walkers, in ascending order.
    """
    if nwalkers < 2:
        raise ValueError("The ensemble needs at least two walkers")
    others = np.delete(np.arange(nwalkers), index)
    for _ in range(max_attempts):
        coins = rstate.binomial(1, 0.5, size=nwalkers - 1)
        if coins.any():
            return others[coins.astype(bool)]
    raise RuntimeError(f"Failed to select a non-empty set of walkers "
                       f"after {max_attempts} attempts")


def mean_walkers(choices, positions):
    """
    Return the centroid of the selected walkers.

    Parameters
    ----------
    choices : `~numpy.ndarray` of int
        Indices of the selected walkers.
    positions : `~numpy.ndarray` with shape (nwalkers, ndim)
        Positions of the whole ensemble.
    """
    return np.mean(positions[choices], axis=0)


def propose_ensemble_walk(u, live, rstate, center_of_mass=None):
    r"""
    Propose a new point using the ensemble walk move.

    .. math::

        u_{\rm prop} = u + \sum^{N_{\rm sel}}_{i=1} z_{i} (v_{i} - \hat{v})

    with :math:`z_{i} \sim N(0, 1)` and :math:`\hat{v}` the centroid of the
    selected walkers. The proposal is affine invariant: transforming every
    walker by :math:`x \mapsto Ax + b` transforms the proposal the same
    way.

    Parameters
    ----------
    u: np.ndarray
        The current point.
    live: np.ndarray
        The selected walkers :math:`v`, one per row.
    rstate: `~numpy.random.Generator`
        The random state to use to generate random numbers.
    center_of_mass: np.ndarray, optional
        Centroid of ``live``. Computed if not provided.

    Returns
    -------
    u_prop: np.ndarray
        The proposed point.
    """
    nsel = len(live)
    if center_of_mass is None:
        center_of_mass = np.mean(live, axis=0)
    scales = rstate.normal(0, 1, nsel)[:, np.newaxis]
    diff = np.sum(scales * (live - center_of_mass), axis=0)
    return u + diff
