#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Containers for one generation of an ensemble and for the outcome of a
transition.

"""

import sys
from collections import namedtuple
import numpy as np

from .utils import LogDensity

__all__ = ["WalkerSet", "TransitionResult", "print_fn"]

TransitionResult = namedtuple('TransitionResult',
                              ['walkers', 'accept_prob', 'accepted', 'ncall'])


class WalkerSet:
    """
    One generation of an ensemble: the positions of ``nwalkers`` walkers
    in ``ndim`` dimensions and the log-density at each position.

    The object is an unchangeable snapshot. The arrays are copied on
    construction and marked read-only, and the attributes cannot be
    reassigned. A transition produces a new `WalkerSet`.

    Parameters
    ----------
    positions : `~numpy.ndarray` with shape (nwalkers, ndim)
        Walker positions.
    logp : `~numpy.ndarray` with shape (nwalkers,)
        ln(density) at each position.
    """

    def __init__(self, positions, logp):
        self._initialized = False
        positions = np.array(positions, dtype=float)
        logp = np.array(logp, dtype=float)
        if positions.ndim != 2:
            raise ValueError("Walker positions must be a 2-d array of "
                             "shape (nwalkers, ndim)")
        nwalkers, ndim = positions.shape
        if nwalkers < 2:
            raise ValueError("The ensemble needs at least two walkers")
        if ndim < 1:
            raise ValueError("Walkers must have at least one dimension")
        if logp.shape != (nwalkers, ):
            raise ValueError(f"Expected {nwalkers} log-densities, "
                             f"got an array of shape {logp.shape}")
        positions.flags.writeable = False
        logp.flags.writeable = False
        self.positions = positions
        self.logp = logp
        self._initialized = True

    @classmethod
    def from_positions(cls, positions, log_density, pool=None):
        """
        Build a `WalkerSet` by evaluating ``log_density`` at every position.

        Parameters
        ----------
        positions : `~numpy.ndarray` with shape (nwalkers, ndim)
            Walker positions.
        log_density : function or `~ensemblecore.utils.LogDensity`
            Function returning ln(density) for a parameter vector.
        pool : user-provided pool, optional
            Pool used to evaluate the log-densities in parallel.
        """
        if not isinstance(log_density, LogDensity):
            log_density = LogDensity(log_density, pool=pool)
        positions = np.asarray(positions, dtype=float)
        return cls(positions, log_density.map(positions))

    def __setattr__(self, name, value):
        if name[0] != '_' and self._initialized:
            raise RuntimeError("Cannot set attributes directly")
        super().__setattr__(name, value)

    @property
    def nwalkers(self):
        return self.positions.shape[0]

    @property
    def ndim(self):
        return self.positions.shape[1]

    def __len__(self):
        return self.nwalkers

    def __getitem__(self, i):
        """ Return the position and log-density of walker ``i`` """
        return self.positions[i], self.logp[i]

    def __repr__(self):
        return (f"WalkerSet(nwalkers={self.nwalkers}, ndim={self.ndim}, "
                f"logp_max={np.max(self.logp):.3f})")

    def copy(self):
        return WalkerSet(self.positions, self.logp)


def print_fn(result, niter, file=None):
    """
    Print a one-line summary of a transition.

    Parameters
    ----------
    result : `TransitionResult`
        Outcome of `~ensemblecore.walk.WalkMoveKernel.step`.
    niter : int
        The current iteration of the caller.
    file : file-like, optional
        Where the line is written. Default is `sys.stderr`.
    """
    if file is None:
        file = sys.stderr
    logp = result.walkers.logp
    finite = logp[np.isfinite(logp)]
    if finite.size > 0:
        logp_str = f"[{finite.min():.3f}, {finite.max():.3f}]"
    else:
        logp_str = "[-inf, -inf]"
    file.write(f"iter: {niter:d} | ncall: {result.ncall:d} | "
               f"acc: {np.mean(result.accepted):6.3f} | "
               f"mean acc prob: {np.mean(result.accept_prob):6.3f} | "
               f"logp: {logp_str}\n")
    file.flush()
