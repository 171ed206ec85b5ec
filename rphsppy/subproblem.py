###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Scenario subproblem solves:
#   min_y f_s(y) + <u, y> + 1/(2 mu) ||y - target||^2
import abc
import logging
import time

import numpy as np
import pyomo.environ as pyo
from pyomo.opt import SolutionStatus, TerminationCondition

import rphsppy.utils.sputils as sputils

logger = logging.getLogger("rphsppy.subproblem")

_GOOD_TERMINATIONS = (
    TerminationCondition.optimal,
    TerminationCondition.locallyOptimal,
    TerminationCondition.globallyOptimal,
    TerminationCondition.feasible,
)


class SubproblemSolver(abc.ABC):
    """ Something that can solve the proximal subproblem of a scenario.

    Instances are shipped to worker processes, so they must be picklable.
    Set thread_safe to False when two solves may not run at the same time
    in one process; such solvers are refused by thread worker pools.
    """
    thread_safe = True

    @abc.abstractmethod
    def solve(self, pb, id_scen, target, mu, dual=None):
        """ Solve min f_s(y) + <dual, y> + 1/(2 mu) ||y - target||^2.

        Args:
            pb (Problem): the problem
            id_scen (int): scenario id
            target (np.ndarray): proximal center, length n
            mu (float): proximal parameter, > 0
            dual (np.ndarray or None): linear term (None means zero)

        Returns:
            np.ndarray: y, length n
        """
        pass


class PyomoSubproblemSolver(SubproblemSolver):
    """ Build the scenario model with the problem's builder and solve it
    with a Pyomo solver.

    Args:
        solver_name (str): anything SolverFactory knows (must accept a
            quadratic objective), e.g. "ipopt" or "gurobi_persistent"
        solver_options (dict or str, optional): solver options; a string is
            parsed by sputils.option_string_to_dict
        tee (bool, optional): show solver output. Default False.

    Note:
        The solver plugin is created on first use in each process and then
        reused; it is not pickled.
        Pyomo solver plugins redirect the process wide stdout and stderr
        while they run, so this solver is not thread safe; use process or
        mpi workers with it.
    """
    thread_safe = False

    def __init__(self, solver_name, solver_options=None, tee=False):
        if solver_name is None:
            raise ValueError("A solver_name is required to solve subproblems")
        self.solver_name = solver_name
        self.solver_options = sputils.solver_options_to_dict(solver_options)
        self.tee = tee
        self._solver_plugin = None

    def __getstate__(self):
        state = self.__dict__.copy()
        state["_solver_plugin"] = None
        return state

    @property
    def solver_plugin(self):
        if self._solver_plugin is None:
            self._solver_plugin = pyo.SolverFactory(self.solver_name)
            if self.solver_options:
                for option_key, option_value in self.solver_options.items():
                    self._solver_plugin.options[option_key] = option_value
        return self._solver_plugin

    def build_model(self, pb, id_scen, target, mu, dual=None):
        """ The scenario ConcreteModel with the proximal objective attached.

        Returns:
            (ConcreteModel, list of VarData)
        """
        model = pyo.ConcreteModel(name=f"scen{id_scen}")
        y, objexpr, _ = pb.build_subpb(model, pb.scenarios[id_scen], id_scen)
        vardatas = sputils.build_vardatalist(model, y)
        n = pb.get_scenariodim()
        if len(vardatas) != n:
            raise ValueError(f"build_subpb returned {len(vardatas)} variables "
                             f"for scenario {id_scen}, expected {n}")
        prox = sum((v - float(t))**2 for v, t in zip(vardatas, target))
        expr = objexpr + (1 / (2 * mu)) * prox
        if dual is not None:
            expr = expr + sum(float(u) * v for v, u in zip(vardatas, dual) if u != 0)
        model._rphsppy_objective = pyo.Objective(expr=expr, sense=pyo.minimize)
        return model, vardatas

    def solve(self, pb, id_scen, target, mu, dual=None):
        target = np.asarray(target, dtype='d')
        model, vardatas = self.build_model(pb, id_scen, target, mu, dual)
        solver = self.solver_plugin
        persistent = sputils.is_persistent(solver)

        solve_keyword_args = dict()
        if self.tee:
            solve_keyword_args["tee"] = True
        if persistent:
            solver.set_instance(model)
            solve_keyword_args["save_results"] = False

        solve_start_time = time.time()
        try:
            results = solver.solve(model, **solve_keyword_args,
                                   load_solutions=False)
            solver_exception = None
        except Exception as e:
            results = None
            solver_exception = e
        logger.debug(f"Scenario {id_scen} solved in "
                     f"{time.time() - solve_start_time:.3f}s")

        if (results is None) or (len(results.solution) == 0 and not persistent) or \
                (len(results.solution) > 0 and
                 results.solution(0).status == SolutionStatus.infeasible) or \
                (results.solver.termination_condition == TerminationCondition.infeasible) or \
                (results.solver.termination_condition == TerminationCondition.infeasibleOrUnbounded) or \
                (results.solver.termination_condition == TerminationCondition.unbounded):
            logger.warning(f"Subproblem status (scenario {id_scen}): "
                           + ("no results" if results is None else
                              f"status={results.solver.status}, "
                              f"termination={results.solver.termination_condition}"))
            if solver_exception is not None:
                raise solver_exception
            # load whatever the solver has, if anything
            if results is not None and len(results.solution) > 0:
                model.solutions.load_from(results)
        else:
            if results.solver.termination_condition not in _GOOD_TERMINATIONS:
                logger.warning(f"Subproblem status (scenario {id_scen}): "
                               f"termination={results.solver.termination_condition}")
            if persistent:
                solver.load_vars()
            else:
                model.solutions.load_from(results)

        y, complete = sputils.vardata_values(vardatas, fallback=target)
        if not complete:
            logger.warning(f"Solver loaded no value for some variables of "
                           f"scenario {id_scen}; using the target there")
        return y
