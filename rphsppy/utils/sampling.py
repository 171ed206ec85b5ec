###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Scenario sampling for the randomized drivers.
import logging

import numpy as np

logger = logging.getLogger("rphsppy.utils.sampling")

DISTR_TOL = 1e-9
DEFAULT_SEED = 1234


def build_sampling_distribution(pb, qdistr="pdistr"):
    """ The scenario sampling probabilities.

    Args:
        pb (Problem): the problem
        qdistr (str or array-like): "pdistr" (or None) for the scenario
            probabilities, "unifdistr" for the uniform distribution, or the
            probabilities themselves (length nscenarios, nonnegative,
            summing to 1)

    Returns:
        np.ndarray: q, length nscenarios

    Raises:
        ValueError: if qdistr is not one of the above
    """
    if qdistr is None or (isinstance(qdistr, str) and qdistr == "pdistr"):
        return pb.probas.copy()
    if isinstance(qdistr, str):
        if qdistr == "unifdistr":
            return np.full(pb.nscenarios, 1.0 / pb.nscenarios)
        raise ValueError(f"Unknown sampling distribution '{qdistr}'; "
                         "use 'pdistr', 'unifdistr' or an array")
    q = np.asarray(qdistr, dtype='d')
    if q.shape != (pb.nscenarios,):
        raise ValueError(f"Sampling distribution has shape {q.shape}, "
                         f"expected ({pb.nscenarios},)")
    if np.any(q < 0):
        raise ValueError(f"Sampling distribution has negative entries: {q}")
    if abs(q.sum() - 1) > DISTR_TOL:
        raise ValueError(f"Sampling distribution sums to {q.sum()}, not 1")
    return q


def qmin(q):
    """ Smallest positive sampling probability"""
    return float(np.min(q[q > 0]))


class ScenarioSampler:
    """ Draw scenario ids from a distribution q.

    Args:
        q (np.ndarray): the sampling distribution
        seed (int, optional): seed of the generator (default 1234)
    """
    def __init__(self, q, seed=None):
        self.q = np.asarray(q, dtype='d')
        self.seed = DEFAULT_SEED if seed is None else seed
        self.rng = np.random.default_rng(self.seed)
        self.ids = np.arange(len(self.q))

    def sample(self):
        return int(self.rng.choice(self.ids, p=self.q))

    def sample_available(self, busy):
        """ Draw from q conditioned on not being in busy.

        Returns:
            int or None: None when every id with positive probability is busy
        """
        if len(busy) == 0:
            return self.sample()
        weights = self.q.copy()
        weights[list(busy)] = 0.0
        total = weights.sum()
        if total <= 0:
            return None
        return int(self.rng.choice(self.ids, p=weights / total))

    def sample_batch(self, k, busy=()):
        """ Up to k distinct ids, none of them in busy"""
        taken = set(busy)
        batch = list()
        while len(batch) < k:
            id_scen = self.sample_available(taken)
            if id_scen is None:
                break
            taken.add(id_scen)
            batch.append(id_scen)
        return batch
