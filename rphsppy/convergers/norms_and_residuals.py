###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Probability weighted residuals used by Progressive Hedging.

import numpy as np


def primal_residual(pb, x, y):
    """
    ||x - y||_p where ||v||_p = sqrt(sum_s p_s ||v_s||^2); x is the
    projected iterate and y the table of subproblem solutions.
    """
    return pb.norm(np.asarray(x) - np.asarray(y))


def dual_residual(pb, u, u_old, mu):
    """
    (1/mu) ||u - u_old||_p, the scaled change of the multipliers over one
    outer iteration.
    """
    return (1 / mu) * pb.norm(np.asarray(u) - np.asarray(u_old))


def step_length(x, y):
    """
    Euclidean length of the last randomized step, ||x - y||.
    """
    return float(np.linalg.norm(np.asarray(x) - np.asarray(y)))
