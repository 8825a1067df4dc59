#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
The wrapper around multiprocessing pool that evaluates the log-density
of the proposals of an ensemble transition in parallel without pickling
the log-density function on every call
"""

import multiprocessing as mp

__all__ = ['Pool']


class FunctionCache:
    """
    Singleton class to cache the function and optional arguments between calls
    """


def initializer(log_density, logp_args, logp_kwargs):
    """
    Initialized function used to initialize the
    singleton object inside each worker of the pool
    """
    FunctionCache.log_density = log_density
    FunctionCache.logp_args = logp_args
    FunctionCache.logp_kwargs = logp_kwargs


def log_density_cache(x, *args, **kwargs):
    """
    Log-density function call
    """
    return FunctionCache.log_density(x, *FunctionCache.logp_args, *args,
                                     **FunctionCache.logp_kwargs, **kwargs)


class Pool:
    """
    The multiprocessing pool wrapper class
    It is intended to be used as a context manager for the ensemble kernel.

    Parameters
    ----------
    njobs: int
        The number of multiprocessing jobs/processes
    log_density: function
        ln(density) function
    logp_args: tuple(optional)
        The optional arguments to be added to the log-density
        function call.
    logp_kwargs: dict(optional)
        The optional keywords to be added to the log-density
        function call

    Examples
    --------
    The pool has to be used with the context manager, and the
    ``.log_density`` attribute of the pool is what is given to the kernel::

        with ensemblecore.pool.Pool(4, log_density) as pool:
            kernel = WalkMoveKernel(pool.log_density, pool=pool)

    The random stream is only used by the parent process, so the
    trajectory is the same as without a pool.
    """

    def __init__(self, njobs, log_density, logp_args=None, logp_kwargs=None):
        self.logp_args = logp_args
        self.logp_kwargs = logp_kwargs
        self.njobs = njobs
        self.log_density_0 = log_density
        self.log_density = log_density_cache
        self.pool = None

    def __enter__(self):
        """
        Activate the pool
        """
        initargs = (self.log_density_0, self.logp_args or (),
                    self.logp_kwargs or {})
        self.pool = mp.Pool(self.njobs, initializer, initargs)
        initializer(*initargs)
        return self

    def map(self, F, x):
        """ Apply the function F to the list x

        Parameters
        ==========

        F: function
        x: iterable
        """
        return self.pool.map(F, x)

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.pool.terminate()
        for name in ('log_density', 'logp_args', 'logp_kwargs'):
            if hasattr(FunctionCache, name):
                delattr(FunctionCache, name)

    @property
    def size(self):
        """
        Return the number of processes in the pool
        """
        return self.njobs

    def close(self):
        self.pool.close()

    def join(self):
        self.pool.join()
