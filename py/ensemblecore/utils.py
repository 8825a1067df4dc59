#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
A collection of useful functions.

"""

import numpy as np

__all__ = ["LogDensity", "get_random_generator", "get_seed_sequence"]


class LogDensity:
    """ Class that calls the log-density function (using a pool if provided)
    and counts the number of evaluations
    """

    def __init__(self, log_density, pool=None):
        """ Initialize the object.

        Parameters:
        log_density: function
            Function returning ln(density) for a parameter vector
        pool: Pool (optional)
            Any kind of pool capable of performing map()
        """
        self.log_density = log_density
        self.pool = pool
        self.ncall = 0

    def map(self, pars):
        """ Evaluate the log-density f-n on the list of vectors
        The pool is used if it was provided when the object was created
        """
        if self.pool is None:
            ret = list(map(self.log_density, pars))
        else:
            ret = self.pool.map(self.log_density, pars)
        self.ncall += len(pars)
        return np.array(ret, dtype=float)

    def __call__(self, x):
        """
        Evaluate the log-density f-n once
        """
        self.ncall += 1
        return float(self.log_density(x))


def get_random_generator(seed=None):
    """
    Return a random generator (using the seed provided if available)
    """
    return np.random.Generator(np.random.PCG64(seed))


def get_seed_sequence(rstate, nitems):
    """
    Return the list of seeds to initialize random generators
    This is useful when walkers are given their own substreams
    """
    seeds = np.random.SeedSequence(rstate.integers(0, 2**63 - 1,
                                                   size=4)).spawn(nitems)
    return seeds
