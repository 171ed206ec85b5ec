###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# base class for the Randomized Progressive Hedging drivers
#
# The global iterate z is owned by the driver (the coordinator). Each
# update picks a scenario s, reads x = P(z)[s] (the averaged trajectory),
# solves the proximal subproblem at 2x - z[s] and moves z[s] by a step
# along y - x. The returned point is the projection P(z).

import logging
import math
import time

import numpy as np

import rphsppy.spbase
import rphsppy.utils.sampling as sampling
from rphsppy.convergers.norms_and_residuals import step_length
from rphsppy.projection import get_averagedtraj, nonanticipatory_projection
from rphsppy.utils.workers import WorkerPool

logger = logging.getLogger("rphsppy.rphbase")

_RANDOMIZED_DEFAULTS = dict(rphsppy.spbase._COMMON_DEFAULTS,
                            maxiter=100000,
                            qdistr="pdistr",
                            seed=None,
                            c=0.9,
                            stepsize=None,
                            nworkers=None,
                            worker_kind="process")


class RPHBase(rphsppy.spbase.SPBase):
    """ Base class for the randomized drivers. See SPBase for the args.

    Args:
        executor (Executor, optional): for the drivers with workers, an
            executor to use instead of creating one (never shut down here)
        uses_workers (bool): set by the subclasses that need a worker pool

    Attributes (partial list):
        z (np.ndarray): the (nscenarios, n) global iterate
        x_feas (np.ndarray): the last projection of z
        q (np.ndarray): the scenario sampling distribution
        sampler (ScenarioSampler): draws the scenario ids
        pool (WorkerPool or None): the workers
        failed_tasks (int): number of worker solves that raised
    """
    default_options = _RANDOMIZED_DEFAULTS
    algoname = "Randomized Progressive Hedging"
    uses_workers = False

    def __init__(
            self,
            options,
            problem,
            subproblem_solver=None,
            extensions=None,
            extension_kwargs=None,
            hist=None,
            callback=None,
            executor=None,
    ):
        super().__init__(
            options,
            problem,
            subproblem_solver=subproblem_solver,
            extensions=extensions,
            extension_kwargs=extension_kwargs,
            hist=hist,
            callback=callback,
        )
        self.q = sampling.build_sampling_distribution(problem, self.options["qdistr"])
        self.sampler = sampling.ScenarioSampler(self.q, seed=self.options["seed"])

        if self.options["c"] <= 0:
            raise ValueError(f"c must be positive, got {self.options['c']}")
        if self.options["stepsize"] is not None and self.options["stepsize"] <= 0:
            raise ValueError(f"stepsize must be positive, got {self.options['stepsize']}")

        if self.uses_workers:
            self.pool = WorkerPool(problem, self.subproblem_solver,
                                   nworkers=self.options["nworkers"],
                                   worker_kind=self.options["worker_kind"],
                                   executor=executor)
        else:
            self.pool = None
        self.failed_tasks = 0

        self.z = np.zeros((self.nscenarios, self.n))
        self.x_feas = np.zeros((self.nscenarios, self.n))
        # last step: averaged trajectory read and subproblem solution
        self.x = np.zeros(self.n)
        self.y = np.zeros(self.n)

    def algo_stats(self):
        """ The parameters shown by display_algopb_stats"""
        stats = dict(mu=self.mu, qdistr=self.options["qdistr"],
                     maxtime=self.budgets.maxtime,
                     maxcomputingtime=self.budgets.maxcomputingtime,
                     maxiter=self.budgets.maxiter)
        if self.pool is not None:
            stats["nworkers"] = self.pool.nworkers
        return stats

    def averaged_trajectory(self, id_scen):
        """ x = P(z)[id_scen] as a new vector"""
        return get_averagedtraj(np.empty(self.n), self.pb, self.z, id_scen)

    def prox_target(self, id_scen, x_scen):
        return 2 * x_scen - self.z[id_scen]

    def apply_update(self, id_scen, x_read, y, step=1.0):
        """ z[id_scen] += step (y - x_read); the only place z rows move"""
        self.z[id_scen] += step * (y - x_read)
        self.x, self.y = x_read, y

    def task_result(self, future, id_scen):
        """ The y of a finished worker task, or None if the solve raised.
        """
        try:
            _, y, _ = future.result()
        except Exception as e:
            self.failed_tasks += 1
            logger.error(f"Subproblem solve failed for scenario {id_scen}: "
                         f"{e.__class__.__name__}: {e}")
            return None
        return y

    def randomized_initialization(self):
        """ Solve every scenario at target 0 into z, then project z.
        """
        if self.printlev > 0:
            print("Initialisation... ", end="", flush=True)
        target = np.zeros(self.n)
        if self.pool is None:
            for id_scen in range(self.nscenarios):
                self.z[id_scen] = self.solve_one(id_scen, target)
        else:
            futures = dict()
            for id_scen in range(self.nscenarios):
                self._ext("pre_solve", id_scen)
                futures[self.pool.submit(id_scen, target, self.mu)] = id_scen
            for future, id_scen in futures.items():
                y = self.task_result(future, id_scen)
                if y is not None:
                    self._ext("post_solve", id_scen, y)
                    self.z[id_scen] = y
        nonanticipatory_projection(self.z, self.pb, self.z)
        if self.printlev > 0:
            print("done")

    def log_iteration(self):
        """ Project z, then print and record; not counted as computing time.
        """
        nonanticipatory_projection(self.x_feas, self.pb, self.z)
        steplength = step_length(self.x, self.y)
        objval = self.record_log(self.x_feas, steplength=steplength)
        if self.printlev > 0:
            print("%5i   %.10e % .16e" % (self.state.it, steplength, objval))

    def iterk_loop(self):
        raise NotImplementedError

    def rph_main(self, finalize=True):
        """ Execute the randomized algorithm.

        Args:
            finalize (bool, optional, default=True):
                If True, call post_loops

        Returns:
            np.ndarray: the last feasible (projected) iterate x_feas
        """
        self.pb.display_algopb_stats(self.algoname, self.printlev,
                                     **self.algo_stats())
        self.start_loop(logstep=self.printstep)
        try:
            self._ext("pre_iter0")
            self.randomized_initialization()
            self._ext("post_iter0")

            if self.printlev > 0:
                print("   it   global residual   objective")
            self.log_iteration()

            self.iterk_loop()

            ## Final print
            if self.state.it % self.printstep != 0:
                self.log_iteration()
        finally:
            if self.pool is not None:
                # anything still in flight is abandoned
                self.pool.shutdown(abandon=True)

        self.report_times()
        if finalize:
            self.post_loops(self.x_feas)
        return self.x_feas


class ComputingClock:
    """ Charge the time between marks to state.computingtime; time spent
    logging is skipped by calling mark() after the log.
    """
    def __init__(self, state):
        self.state = state
        self.mark()

    def mark(self):
        self._last = time.time()

    def charge(self):
        now = time.time()
        self.state.computingtime += now - self._last
        self._last = now


def remaining_timeout(state, budgets):
    """ Seconds left on the wall clock budget, None for no limit"""
    if math.isinf(budgets.maxtime):
        return None
    return state.remaining_time(budgets)
