#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
ensemblecore is the sampling core of a Bayesian inference engine.
The main functionality is performed by the
ensemblecore.WalkMoveKernel class, which advances an ensemble of walkers,
and the ensemblecore.Writer class, which maps constrained parameters to
the unconstrained space the walkers move in.
"""

from .ensemble import WalkerSet, TransitionResult
from .walk import WalkMoveKernel
from .writer import Writer
from .transforms import DomainError
from . import proposals
from . import transforms
from . import utils
from . import pool

__version__ = "0.1.0"
