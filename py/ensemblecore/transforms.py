#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Numerical building blocks shared by the unconstraining
:class:`~ensemblecore.writer.Writer` and the constraining maps that invert it.

The constraining functions here are the exact inverses of the writer
operations and define the layout the writer must produce.

"""

import math
import warnings
import numpy as np
from scipy import linalg
from scipy.special import logit, expit, softmax

__all__ = [
    "DomainError", "logit", "expit", "corr_free_indices", "factor_corr_L",
    "factor_cov_matrix", "pos_constrain", "lb_constrain", "ub_constrain",
    "lub_constrain", "corr_constrain", "prob_constrain",
    "pos_ordered_constrain", "simplex_constrain", "read_corr_L",
    "read_corr_matrix", "read_cov_matrix"
]

SQRTEPS = math.sqrt(float(np.finfo(np.float64).eps))


class DomainError(ValueError):
    """
    Raised when a constrained value lies outside the domain of the
    transform applied to it.

    Attributes
    ----------
    transform : str
        Name of the transform that was applied.
    constraint : str
        Human readable form of the constraint that was violated.
    value : object
        The offending value.
    """

    def __init__(self, transform, constraint, value):
        self.transform = transform
        self.constraint = constraint
        self.value = value
        super().__init__(f"{transform}: constraint {constraint} "
                         f"violated by {value!r}")

    def __reduce__(self):
        return (self.__class__, (self.transform, self.constraint, self.value))


def corr_free_indices(k):
    """
    Return the (row, column) indices of the strict lower triangle of a
    ``k x k`` matrix in the order partial correlations are serialized:
    column by column, i.e. ``(1,0), (2,0), ..., (k-1,0), (2,1), ...``.
    """
    cols, rows = np.triu_indices(k, 1)
    return rows, cols


def factor_corr_L(L):
    """
    Convert the lower Cholesky factor of a correlation matrix into its
    unconstrained canonical partial correlations.

    Row ``i`` of ``L`` has unit norm. The partial correlation of the pair
    ``(i, j)``, ``j < i``, is ``L[i, j] / sqrt(1 - sum_{m<j} L[i, m]**2)``
    and is returned on the ``atanh`` scale.

    Parameters
    ----------
    L : `~numpy.ndarray` with shape (k, k)
        Lower triangular Cholesky factor of a correlation matrix.

    Returns
    -------
    cpcs : `~numpy.ndarray` with shape (k * (k - 1) / 2,)
        Unbounded partial correlations, ordered as `corr_free_indices`.
    """
    k = L.shape[0]
    w = np.zeros((k, k))
    for i in range(1, k):
        sum_sqs = 0.
        for j in range(i):
            w[i, j] = L[i, j] / math.sqrt(max(1. - sum_sqs, 0.))
            sum_sqs += L[i, j]**2
    rows, cols = corr_free_indices(k)
    with np.errstate(divide='ignore'):
        return np.arctanh(np.clip(w[rows, cols], -1., 1.))


def factor_cov_matrix(sigma, transform='cov_matrix_unconstrain'):
    """
    Factor a covariance matrix into unconstrained partial correlations
    and positive scale factors.

    The matrix is rescaled to a correlation matrix ``R = D^-1 sigma D^-1``
    with ``D = diag(sqrt(diag(sigma)))``, the diagonal of ``R`` is reset to
    exactly one, and ``R`` is factored with an unpivoted lower Cholesky
    decomposition. No pivoting is applied, so the row order of ``sigma`` is
    the row order of the factor.

    Parameters
    ----------
    sigma : `~numpy.ndarray` with shape (k, k)
        Symmetric positive-definite matrix.
    transform : str, optional
        Name reported in a raised `DomainError`.

    Returns
    -------
    cpcs : `~numpy.ndarray` with shape (k * (k - 1) / 2,)
        Unbounded partial correlations (see `factor_corr_L`).
    sds : `~numpy.ndarray` with shape (k,)
        Positive scale factors ``sqrt(diag(sigma))``.

    Raises
    ------
    DomainError
        If ``sigma`` has a non-positive diagonal or is not positive
        definite.
    """
    sds = np.diag(sigma).astype(float)
    if not np.all(sds > 0):
        raise DomainError(transform, "diagonal > 0", sigma)
    sds = np.sqrt(sds)
    corr = sigma / np.outer(sds, sds)
    # unit diagonal keeps round-off out of the factorization
    np.fill_diagonal(corr, 1.)
    try:
        L = linalg.cholesky(corr, lower=True)
    except linalg.LinAlgError:
        raise DomainError(transform, "positive definite", sigma)
    if np.linalg.cond(corr) > 1. / SQRTEPS:
        warnings.warn(
            f"{transform}: the matrix is close to singular, the partial "
            "correlations may be inaccurate", RuntimeWarning)
    return factor_corr_L(L), sds


def pos_constrain(x):
    """ Inverse of ``log(y)`` """
    return np.exp(x)


def lb_constrain(x, lb):
    """ Inverse of ``log(y - lb)`` """
    return np.exp(x) + lb


def ub_constrain(x, ub):
    """ Inverse of ``log(ub - y)`` """
    return ub - np.exp(x)


def lub_constrain(x, lb, ub):
    """ Inverse of ``logit((y - lb) / (ub - lb))`` """
    return lb + (ub - lb) * expit(x)


def corr_constrain(x):
    return np.tanh(x)


def prob_constrain(x):
    return expit(x)


def pos_ordered_constrain(x):
    """
    Inverse of the positive-ordered transform: ``y[0] = exp(x[0])`` and
    ``y[k] = y[k-1] + exp(x[k])``.
    """
    return np.cumsum(np.exp(np.asarray(x, dtype=float)))


def simplex_constrain(x):
    """
    Map ``K - 1`` unconstrained values to a ``K`` simplex. The last
    component is the reference category with a log-ratio of zero.
    """
    return softmax(np.append(np.asarray(x, dtype=float), 0.))


def read_corr_L(cpcs, k):
    """
    Build the lower Cholesky factor of a ``k x k`` correlation matrix from
    its unconstrained partial correlations (inverse of `factor_corr_L`).
    """
    cpcs = np.asarray(cpcs, dtype=float)
    if cpcs.shape != (k * (k - 1) // 2, ):
        raise ValueError(f"Expected {k * (k - 1) // 2} partial correlations "
                         f"for a {k}x{k} matrix, got {cpcs.shape}")
    w = np.zeros((k, k))
    rows, cols = corr_free_indices(k)
    w[rows, cols] = np.tanh(cpcs)
    L = np.zeros((k, k))
    L[0, 0] = 1.
    for i in range(1, k):
        sum_sqs = 0.
        for j in range(i):
            L[i, j] = w[i, j] * math.sqrt(1. - sum_sqs)
            sum_sqs += L[i, j]**2
        L[i, i] = math.sqrt(max(1. - sum_sqs, 0.))
    return L


def read_corr_matrix(cpcs, k):
    L = read_corr_L(cpcs, k)
    return L @ L.T


def read_cov_matrix(x, k):
    """
    Inverse of the covariance writer: ``x`` holds ``k * (k - 1) / 2``
    partial correlations followed by ``k`` log scale factors.
    """
    x = np.asarray(x, dtype=float)
    ncpcs = k * (k - 1) // 2
    if x.shape != (ncpcs + k, ):
        raise ValueError(f"Expected {ncpcs + k} values for a {k}x{k} "
                         f"covariance matrix, got {x.shape}")
    sds = np.exp(x[ncpcs:])
    return read_corr_matrix(x[:ncpcs], k) * np.outer(sds, sds)
