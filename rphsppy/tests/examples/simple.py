###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Three scenarios, three stages, one variable per stage:
#   f_s(y) = ||y - c_s||^2  subject to  y <= 3
# with c_s = (s+1, s+1, s+1) and probabilities 0.5, 0.25, 0.25.
# Scenarios 1 and 2 share their history up to stage 1.

import numpy as np
import pyomo.environ as pyo

from rphsppy.problem import AbstractScenario, Problem
from rphsppy.scenario_tree import ScenarioTree
from rphsppy.subproblem import SubproblemSolver

XSOL = np.array([[1.75, 1.0, 1.0],
                 [1.75, 2.5, 2.0],
                 [1.75, 2.5, 3.0]])

# objective value at XSOL
OPTVAL = 0.8125


class SimpleScenario(AbstractScenario):
    def __init__(self, center, bound=3.0):
        self.center = np.asarray(center, dtype='d')
        self.bound = bound


def build_simple_subpb(model, scenario, id_scen):
    n = len(scenario.center)
    model.y = pyo.Var(range(n))
    model.bound = pyo.Constraint(range(n),
                                 rule=lambda m, i: m.y[i] <= scenario.bound)
    objexpr = sum((model.y[i] - float(scenario.center[i]))**2 for i in range(n))
    return model.y, objexpr, [model.bound]


def build_simpleexample():
    scenarios = [SimpleScenario([1, 1, 1]),
                 SimpleScenario([2, 2, 2]),
                 SimpleScenario([3, 3, 3])]
    tree = ScenarioTree([[[0, 1, 2]],
                         [[0], [1, 2]],
                         [[0], [1], [2]]])
    return Problem(scenarios,
                   build_simple_subpb,
                   [0.5, 0.25, 0.25],
                   nscenarios=3,
                   nstages=3,
                   stage_to_dim=[range(0, 1), range(1, 2), range(2, 3)],
                   scenario_tree=tree)


class SimpleProxSolver(SubproblemSolver):
    """ Exact subproblem solution for the simple example; coordinatewise
    y = min(bound, (2c - u + target/mu) / (2 + 1/mu)).
    """
    def solve(self, pb, id_scen, target, mu, dual=None):
        scenario = pb.scenarios[id_scen]
        u = np.zeros(len(scenario.center)) if dual is None else np.asarray(dual)
        y = (2 * scenario.center - u + np.asarray(target) / mu) / (2 + 1 / mu)
        return np.minimum(y, scenario.bound)


class FlakyProxSolver(SimpleProxSolver):
    """ Raises on every fail_every-th call (per copy) """
    def __init__(self, fail_every=4):
        self.fail_every = fail_every
        self.ncalls = 0

    def solve(self, pb, id_scen, target, mu, dual=None):
        self.ncalls += 1
        if self.ncalls % self.fail_every == 0:
            raise RuntimeError(f"solve number {self.ncalls} failed on purpose")
        return super().solve(pb, id_scen, target, mu, dual)
