#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Writer that converts constrained parameter values into the unconstrained
representation consumed by the samplers.

Each ``*_unconstrain`` method inverts the corresponding constraining map in
:mod:`ensemblecore.transforms`. Values are appended in call order, and that
order is the layout a reader has to follow to reconstruct the constrained
values.

"""

import numpy as np

from .transforms import DomainError, logit, factor_cov_matrix

__all__ = ["Writer"]


class Writer:
    """
    Append-only accumulator of unconstrained reals and integers.

    Every method checks all of its preconditions before writing anything,
    so a call that raises `~ensemblecore.transforms.DomainError` leaves the
    buffers untouched.

    Parameters
    ----------
    data_r : list, optional
        List the real values are appended to. A new list is created if not
        provided.
    data_i : list, optional
        List the integer values are appended to.

    Attributes
    ----------
    data_r : list of float
        Unconstrained real values written so far.
    data_i : list of int
        Integer values written so far.
    """

    #: Tolerance for the unit-sum check of simplexes and the unit scale
    #: check of correlation matrices.
    CONSTRAINT_TOLERANCE = 1e-8

    def __init__(self, data_r=None, data_i=None):
        self.data_r = data_r if data_r is not None else []
        self.data_i = data_i if data_i is not None else []

    def __repr__(self):
        return (f"{self.__class__.__name__}(nreal={len(self.data_r)}, "
                f"nint={len(self.data_i)})")

    def _write(self, values):
        self.data_r.extend(float(v) for v in values)

    @staticmethod
    def _as_vector(y, transform):
        y = np.asarray(y, dtype=float)
        if y.ndim != 1:
            raise DomainError(transform, "one-dimensional", y)
        return y

    def _as_square(self, y, transform):
        y = np.asarray(y, dtype=float)
        if y.ndim != 2 or y.shape[0] != y.shape[1]:
            raise DomainError(transform, "square matrix", y)
        if y.shape[0] == 0:
            raise DomainError(transform, "size > 0", y)
        if not np.all(np.isfinite(y)):
            raise DomainError(transform, "finite", y)
        scale = max(1., np.max(np.abs(y)))
        if not np.allclose(y, y.T, rtol=0,
                           atol=self.CONSTRAINT_TOLERANCE * scale):
            raise DomainError(transform, "symmetric", y)
        return y

    def integer(self, n):
        """
        Write an integer value. Integers are passed through unchanged.
        """
        try:
            integral = float(n).is_integer()
        except (TypeError, ValueError):
            integral = False
        if isinstance(n, (bool, np.bool_)) or not integral:
            raise DomainError('integer', "integral value", n)
        self.data_i.append(int(n))

    def scalar_unconstrain(self, y):
        """
        Write an unconstrained scalar. The transform is the identity.
        """
        self._write([y])

    def vector_unconstrain(self, y):
        """
        Write an unconstrained vector, element by element.
        """
        self._write(self._as_vector(y, 'vector_unconstrain'))

    def matrix_unconstrain(self, y):
        """
        Write an unconstrained matrix in column-major order.
        """
        y = np.asarray(y, dtype=float)
        if y.ndim != 2:
            raise DomainError('matrix_unconstrain', "two-dimensional", y)
        self._write(y.ravel(order='F'))

    def scalar_pos_unconstrain(self, y):
        """
        Write ``log(y)`` for a non-negative scalar ``y``.
        """
        if not y >= 0:
            raise DomainError('scalar_pos_unconstrain', "y >= 0", y)
        with np.errstate(divide='ignore'):
            self._write([np.log(y)])

    def scalar_lb_unconstrain(self, lb, y):
        """
        Write ``log(y - lb)`` for a scalar ``y`` bounded below by ``lb``.
        """
        if not y >= lb:
            raise DomainError('scalar_lb_unconstrain', f"y >= {lb}", y)
        with np.errstate(divide='ignore'):
            self._write([np.log(y - lb)])

    def scalar_ub_unconstrain(self, ub, y):
        """
        Write ``log(ub - y)`` for a scalar ``y`` bounded above by ``ub``.
        """
        if not y <= ub:
            raise DomainError('scalar_ub_unconstrain', f"y <= {ub}", y)
        with np.errstate(divide='ignore'):
            self._write([np.log(ub - y)])

    def scalar_lub_unconstrain(self, lb, ub, y):
        """
        Write ``logit((y - lb) / (ub - lb))`` for ``lb <= y <= ub``.
        """
        if not lb < ub:
            raise DomainError('scalar_lub_unconstrain', f"{lb} < {ub}",
                              (lb, ub))
        if not lb <= y <= ub:
            raise DomainError('scalar_lub_unconstrain',
                              f"{lb} <= y <= {ub}", y)
        self._write([logit((y - lb) / (ub - lb))])

    def corr_unconstrain(self, y):
        """
        Write ``atanh(y)`` for a correlation ``-1 <= y <= 1``.
        """
        if not -1 <= y <= 1:
            raise DomainError('corr_unconstrain', "-1 <= y <= 1", y)
        with np.errstate(divide='ignore'):
            self._write([np.arctanh(y)])

    def prob_unconstrain(self, y):
        """
        Write ``logit(y)`` for a probability ``0 <= y <= 1``.
        """
        if not 0 <= y <= 1:
            raise DomainError('prob_unconstrain', "0 <= y <= 1", y)
        self._write([logit(y)])

    def pos_ordered_unconstrain(self, y):
        """
        Write the unconstrained form of a positive, ordered vector.

        For an input ``y`` of size ``K`` the ``K`` values
        ``x[0] = log(y[0])`` and ``x[k] = log(y[k] - y[k-1])`` are written.
        An empty vector writes nothing.
        """
        y = self._as_vector(y, 'pos_ordered_unconstrain')
        if y.size == 0:
            return
        if not y[0] >= 0:
            raise DomainError('pos_ordered_unconstrain', "y[0] >= 0", y)
        if not np.all(np.diff(y) >= 0):
            raise DomainError('pos_ordered_unconstrain', "y[k] >= y[k-1]",
                              y)
        with np.errstate(divide='ignore'):
            self._write(np.log(np.diff(y, prepend=0.)))

    def simplex_unconstrain(self, y):
        """
        Write the unconstrained form of a simplex.

        For a simplex of size ``K`` the ``K - 1`` log-ratios
        ``log(y[i]) - log(y[K-1])`` are written, so a simplex of size one
        writes nothing.
        """
        y = self._as_vector(y, 'simplex_unconstrain')
        if y.size == 0:
            raise DomainError('simplex_unconstrain', "size > 0", y)
        if not np.all(y >= 0):
            raise DomainError('simplex_unconstrain', "y[i] >= 0", y)
        if not abs(1. - y.sum()) < self.CONSTRAINT_TOLERANCE:
            raise DomainError('simplex_unconstrain', "sum(y) == 1", y)
        with np.errstate(divide='ignore', invalid='ignore'):
            logy = np.log(y)
            self._write(logy[:-1] - logy[-1])

    def corr_matrix_unconstrain(self, y):
        """
        Write the ``k * (k - 1) / 2`` unconstrained partial correlations of
        a ``k x k`` correlation matrix.

        The matrix is factored by
        `~ensemblecore.transforms.factor_cov_matrix` and the recovered scale
        factors have to be one within `CONSTRAINT_TOLERANCE`.
        """
        y = self._as_square(y, 'corr_matrix_unconstrain')
        cpcs, sds = factor_cov_matrix(y, transform='corr_matrix_unconstrain')
        if not np.all(np.abs(sds - 1.) < self.CONSTRAINT_TOLERANCE):
            raise DomainError('corr_matrix_unconstrain', "unit diagonal", y)
        self._write(cpcs)

    def cov_matrix_unconstrain(self, y):
        """
        Write the unconstrained form of a ``k x k`` covariance matrix: the
        ``k * (k - 1) / 2`` partial correlations of its correlation matrix
        followed by the ``k`` scale factors on the log scale.
        """
        y = self._as_square(y, 'cov_matrix_unconstrain')
        cpcs, sds = factor_cov_matrix(y, transform='cov_matrix_unconstrain')
        self._write(np.concatenate([cpcs, np.log(sds)]))
