###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# The multi-stage stochastic problem: scenarios, probabilities, tree and the
# user's per-scenario subproblem builder.
import abc
import logging

import numpy as np
import pyomo.environ as pyo

import rphsppy.utils.sputils as sputils

logger = logging.getLogger("rphsppy.problem")

PROBA_TOL = 1e-9


class AbstractScenario(abc.ABC):
    """ Marker for user scenario data.

    Any picklable object may be used as a scenario; subclassing this is only
    a way to document intent. Scenarios are never modified by the drivers.
    """
    pass


class SubproblemBuilder(abc.ABC):
    """ Callable that adds one scenario's variables and constraints to a model.

    ``builder(model, scenario, id_scen)`` gets an empty ``ConcreteModel``
    and must return ``(y, objexpr, ctrrefs)`` where ``y`` is a Var (or list
    of Vars / VarDatas) that flattens to exactly ``n`` VarDatas in
    stage order, ``objexpr`` is the scenario cost expression and ``ctrrefs``
    are the constraints that were added. The builder must not declare an
    Objective. A plain function with the same signature is accepted.
    """
    @abc.abstractmethod
    def __call__(self, model, scenario, id_scen):
        pass


class Problem:
    """ A multi-stage stochastic problem in scenario form.

    Args:
        scenarios (list): one (opaque, picklable) object per scenario
        build_subpb (callable): see SubproblemBuilder
        probas (array-like of float): scenario probabilities
        nscenarios (int): number of scenarios
        nstages (int): number of stages
        stage_to_dim (list of range): the coordinates of the decision
            vector that belong to each stage; contiguous and in order
        scenario_tree (ScenarioTree): who shares history at each stage

    Raises:
        ValueError: if any of the above are inconsistent

    Note:
        The Problem is read-only once built; the drivers allocate their own
        iterate tables. It is shipped (pickled) to process workers, so the
        scenarios and ``build_subpb`` must be picklable for
        ``worker_kind="process"``.
    """
    def __init__(self,
                 scenarios,
                 build_subpb,
                 probas,
                 nscenarios,
                 nstages,
                 stage_to_dim,
                 scenario_tree):
        self.scenarios = list(scenarios)
        self.build_subpb = build_subpb
        self.probas = np.asarray(probas, dtype='d')
        self.nscenarios = int(nscenarios)
        self.nstages = int(nstages)
        self.stage_to_dim = [range(r.start, r.stop) for r in stage_to_dim]
        self.scenario_tree = scenario_tree

        self._check_consistency()
        self._compute_class_weights()
        self._eval_models = dict()

    def _check_consistency(self):
        if len(self.scenarios) != self.nscenarios:
            raise ValueError(f"Got {len(self.scenarios)} scenarios "
                             f"but nscenarios={self.nscenarios}")
        if self.probas.shape != (self.nscenarios,):
            raise ValueError(f"probas has shape {self.probas.shape}, "
                             f"expected ({self.nscenarios},)")
        if np.any(self.probas < 0):
            raise ValueError(f"Negative scenario probabilities: {self.probas}")
        if abs(self.probas.sum() - 1) > PROBA_TOL:
            raise ValueError(f"Scenario probabilities sum to {self.probas.sum()}, "
                             "not 1")
        if len(self.stage_to_dim) != self.nstages:
            raise ValueError(f"stage_to_dim has {len(self.stage_to_dim)} "
                             f"entries for {self.nstages} stages")
        start = 0
        for t, r in enumerate(self.stage_to_dim):
            if r.start != start or r.stop <= r.start:
                raise ValueError(f"stage_to_dim[{t}]={r} is not a nonempty "
                                 f"range starting at {start}")
            start = r.stop
        if self.scenario_tree.nstages != self.nstages:
            raise ValueError(f"Scenario tree has {self.scenario_tree.nstages} "
                             f"stages, problem has {self.nstages}")
        if self.scenario_tree.nscenarios != self.nscenarios:
            raise ValueError(f"Scenario tree has {self.scenario_tree.nscenarios} "
                             f"scenarios, problem has {self.nscenarios}")

    def _compute_class_weights(self):
        # class_weights[t] is a list of (scenario ids, conditional weights)
        self.class_weights = list()
        for t in range(self.nstages):
            stage_weights = list()
            for ids in self.scenario_tree.classes(t):
                p = self.probas[ids]
                total = p.sum()
                if total > 0:
                    w = p / total
                else:
                    w = np.full(len(ids), 1.0 / len(ids))
                stage_weights.append((ids, w))
            self.class_weights.append(stage_weights)

    def __getstate__(self):
        # the Pyomo evaluation models stay where they were built
        state = self.__dict__.copy()
        state["_eval_models"] = dict()
        return state

    def get_scenariodim(self):
        """ Dimension n of one scenario's decision vector"""
        return self.stage_to_dim[-1].stop

    def norm(self, x):
        """ sqrt(sum_s p_s ||x_s||^2)"""
        x = np.asarray(x)
        return float(np.sqrt(np.dot(self.probas, np.sum(x * x, axis=1))))

    def dot(self, x, y):
        """ sum_s p_s <x_s, y_s>"""
        return float(np.dot(self.probas, np.sum(np.asarray(x) * np.asarray(y), axis=1)))

    def _eval_model(self, id_scen):
        if id_scen not in self._eval_models:
            model = pyo.ConcreteModel(name=f"eval_scen{id_scen}")
            y, objexpr, _ = self.build_subpb(model, self.scenarios[id_scen], id_scen)
            vardatas = sputils.build_vardatalist(model, y)
            if len(vardatas) != self.get_scenariodim():
                raise ValueError(f"build_subpb returned {len(vardatas)} variables "
                                 f"for scenario {id_scen}, expected "
                                 f"{self.get_scenariodim()}")
            self._eval_models[id_scen] = (model, vardatas, objexpr)
        return self._eval_models[id_scen]

    def scenario_objective(self, id_scen, x_scen):
        """ f_s(x_scen): the scenario cost expression evaluated at x_scen"""
        _, vardatas, objexpr = self._eval_model(id_scen)
        for v, val in zip(vardatas, x_scen):
            v.set_value(float(val), skip_validation=True)
        return float(pyo.value(objexpr))

    def objective_value(self, x):
        """ sum_s p_s f_s(x[s])"""
        return sum(self.probas[s] * self.scenario_objective(s, x[s])
                   for s in range(self.nscenarios))

    def display_algopb_stats(self, algoname, printlev=1, **kwargs):
        """ Print a header with the problem sizes and the algorithm parameters"""
        if printlev <= 0:
            return
        print("-" * 72)
        print(f"--- {algoname}")
        print("-" * 72)
        nnodes = len(self.scenario_tree.all_nodenames)
        print(f"Problem: {self.nscenarios} scenarios, {self.nstages} stages, "
              f"{nnodes} tree nodes, scenario dimension {self.get_scenariodim()}")
        if len(kwargs) > 0:
            print("Parameters:")
            width = max(len(k) for k in kwargs)
            for k, v in kwargs.items():
                print(f"  {k:<{width}} : {v}")
        print("-" * 72)

    def __repr__(self):
        return (f"Problem(nscenarios={self.nscenarios}, nstages={self.nstages}, "
                f"n={self.get_scenariodim()})")


def get_scenariodim(pb):
    return pb.get_scenariodim()


def norm(pb, x):
    return pb.norm(x)


def dot(pb, x, y):
    return pb.dot(x, y)


def objective_value(pb, x):
    return pb.objective_value(x)


def display_algopb_stats(pb, algoname, printlev=1, **kwargs):
    return pb.display_algopb_stats(algoname, printlev=printlev, **kwargs)
