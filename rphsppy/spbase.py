###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# base class for the consensus drivers

import logging
import math
import time

import numpy as np

import rphsppy.log
from rphsppy import global_toc
from rphsppy.convergers.budget import Budgets, LoopState, termination_reason
from rphsppy.extensions.extension import MultiExtension
from rphsppy.subproblem import PyomoSubproblemSolver

logger = logging.getLogger("rphsppy.spbase")

# options every driver understands
_COMMON_DEFAULTS = {
    "mu": 3.0,
    "maxtime": 3600.0,
    "maxcomputingtime": math.inf,
    "maxiter": 1000,
    "printlev": 1,
    "printstep": 1,
    "solver_name": None,
    "solver_options": None,
    "tee": False,
    "history_csv": None,
}


class SPBase:
    """ Base class for all drivers.

    Args:
        options (dict or Config): driver options; missing entries, and None
            entries for options whose default is not None, take the class
            defaults (see default_options)
        problem (Problem): the problem to solve
        subproblem_solver (SubproblemSolver, optional): how to solve the
            scenario subproblems; by default a PyomoSubproblemSolver built
            from the solver_name, solver_options and tee options
        extensions (Extension class or list of them, optional): observers
        extension_kwargs (dict, optional): keyword args for the extension
        hist (History, optional): filled in at each log event
        callback (callable, optional): callback(pb, x, hist) at each log event

    Attributes (partial list):
        pb (Problem): the problem
        options (dict): the options, defaults filled in
        budgets (Budgets): iteration and time limits
        state (LoopState): the loop state (None before the main method runs)
        termination (Termination): why the main method stopped
    """
    default_options = _COMMON_DEFAULTS

    def __init__(
            self,
            options,
            problem,
            subproblem_solver=None,
            extensions=None,
            extension_kwargs=None,
            hist=None,
            callback=None,
    ):
        self.start_time = time.perf_counter()
        self.options = dict(self.default_options)
        if options is not None:
            self.options.update({name: value for name, value in options.items()
                                 if value is not None
                                 or self.default_options.get(name) is None})
        self._check_options()
        self.pb = problem
        self.nscenarios = problem.nscenarios
        self.n = problem.get_scenariodim()
        self.mu = self.options["mu"]
        self.hist = hist
        self.callback = callback
        self.budgets = Budgets(maxiter=self.options["maxiter"],
                               maxtime=self.options["maxtime"],
                               maxcomputingtime=self.options["maxcomputingtime"])
        self.state = None
        self.termination = None

        global_toc(f"Initializing {self.__class__.__name__}", self.printlev > 1)

        if subproblem_solver is None:
            self._options_check(["solver_name"],
                                {k: v for k, v in self.options.items() if v is not None})
            subproblem_solver = PyomoSubproblemSolver(self.options["solver_name"],
                                                      self.options["solver_options"],
                                                      tee=self.options["tee"])
        self.subproblem_solver = subproblem_solver

        if isinstance(extensions, (list, tuple)):
            extension_kwargs = {"ext_classes": list(extensions)}
            extensions = MultiExtension
        self.extensions = extensions
        self.extension_kwargs = extension_kwargs
        if self.extensions is not None:
            if self.extension_kwargs is None:
                self.extobject = self.extensions(self)
            else:
                self.extobject = self.extensions(
                    self, **self.extension_kwargs
                )

    @property
    def printlev(self):
        return self.options["printlev"]

    @property
    def printstep(self):
        return self.options["printstep"]

    def _options_check(self, required_options, given_options):
        """ Confirm that the specified list of options contains the specified
            list of required options. Raises a ValueError if anything is
            missing.
        """
        missing = [option for option in required_options if option not in given_options]
        if missing:
            raise ValueError(f"Missing the following required options: {', '.join(missing)}")

    def _check_options(self):
        if self.options["mu"] <= 0:
            raise ValueError(f"mu must be positive, got {self.options['mu']}")
        if self.options["printstep"] < 1:
            raise ValueError(f"printstep must be at least 1, got {self.options['printstep']}")

    def _ext(self, hook, *args):
        if self.extensions is not None:
            getattr(self.extobject, hook)(*args)

    def solve_one(self, id_scen, target, dual=None):
        """ Solve the subproblem of id_scen in this process.

        Args:
            id_scen (int): scenario id
            target (np.ndarray): proximal center
            dual (np.ndarray, optional): linear term (PH)

        Returns:
            np.ndarray: the subproblem solution y
        """
        self._ext("pre_solve", id_scen)
        y = self.subproblem_solver.solve(self.pb, id_scen, target, self.mu, dual)
        self._ext("post_solve", id_scen, y)
        return y

    def start_loop(self, logstep):
        """ Reset the loop state and the history before INIT"""
        self.state = LoopState()
        self.termination = None
        if self.hist is not None:
            self.hist.start(logstep)

    def record_log(self, x, **extras):
        """ Record a log event for the feasible iterate x.

        Returns:
            float: the objective value at x
        """
        objval = self.pb.objective_value(x)
        if self.hist is not None:
            self.hist.record(objval, self.state.computingtime,
                             self.state.elapsed(), np.array(x), **extras)
        self._ext("on_log", x)
        if self.callback is not None:
            self.callback(self.pb, x, self.hist)
        return objval

    def report_times(self):
        if self.printlev > 0:
            print("Computation time (s): ", self.state.computingtime)
            print("Total time       (s): ", self.state.elapsed())

    def post_loops(self, x):
        """ Wrap up a run that returns x"""
        self.termination = termination_reason(self.state, self.budgets)
        if self.termination is not None:
            global_toc(f"{self.__class__.__name__} stopped on {self.termination.value} "
                       f"after {self.state.it} iterations", self.printlev > 1)
        self._ext("post_loops", x)
        if self.options["history_csv"] is not None and self.hist is not None:
            self.hist.write_csv(self.options["history_csv"])
