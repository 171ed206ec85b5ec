###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Randomized Progressive Hedging, parallel: batches of distinct scenarios
# solved by the workers, updates applied by the coordinator as they arrive

import logging
from concurrent.futures import TimeoutError as FuturesTimeoutError
from concurrent.futures import as_completed

import numpy as np

import rphsppy.rphbase
from rphsppy.convergers.budget import Termination, should_continue
from rphsppy.rphbase import ComputingClock, remaining_timeout

logger = logging.getLogger("rphsppy.opt.randpar")


class RandomizedPar(rphsppy.rphbase.RPHBase):
    """ Randomized PH on a pool of workers. See RPHBase for list of args.

    The coordinator samples up to nworkers distinct scenarios, reads each
    x = P(z)[s] right before dispatch, and applies
    z[s] += c (y - x) for each result as it arrives. Each applied update
    is one iteration.
    """
    algoname = "Randomized Progressive Hedging - parallel"
    uses_workers = True

    def algo_stats(self):
        stats = super().algo_stats()
        stats["c"] = self.options["c"]
        return stats

    def dispatch_batch(self):
        """ Submit a batch of distinct scenarios.

        Returns:
            dict: future -> (id_scen, x read at dispatch)
        """
        nbatch = int(min(self.pool.nworkers, self.budgets.maxiter - self.state.it))
        futures = dict()
        for id_scen in self.sampler.sample_batch(nbatch):
            x_scen = self.averaged_trajectory(id_scen)
            self._ext("pre_solve", id_scen)
            future = self.pool.submit(id_scen, self.prox_target(id_scen, x_scen), self.mu)
            futures[future] = (id_scen, x_scen)
        return futures

    def iterk_loop(self):
        c = self.options["c"]
        clock = ComputingClock(self.state)
        while should_continue(self.state, self.budgets):
            clock.mark()
            futures = self.dispatch_batch()
            try:
                for future in as_completed(futures,
                                           timeout=remaining_timeout(self.state, self.budgets)):
                    id_scen, x_scen = futures[future]
                    y = self.task_result(future, id_scen)
                    if y is None:
                        continue
                    self._ext("post_solve", id_scen, y)
                    self.apply_update(id_scen, x_scen, y, step=c)
                    self.state.it += 1
                    clock.charge()

                    self._ext("enditer")

                    # Print and logs
                    if self.state.it % self.printstep == 0:
                        self.log_iteration()
                        clock.mark()
            except FuturesTimeoutError:
                # out of wall clock time; the rest of the batch is abandoned
                logger.debug(f"Time limit reached with tasks in flight at iteration {self.state.it}")
                clock.charge()
                self.state.stop_reason = Termination.TIMEOUT
                return
            clock.charge()


def solve_randomized_par(pb,
                         mu=3,
                         qdistr="pdistr",
                         c=0.9,
                         maxtime=3600,
                         maxcomputingtime=np.inf,
                         maxiter=1e5,
                         printlev=1,
                         printstep=1,
                         seed=None,
                         hist=None,
                         solver_name=None,
                         solver_options=None,
                         tee=False,
                         callback=None,
                         subproblem_solver=None,
                         extensions=None,
                         nworkers=None,
                         worker_kind="process",
                         executor=None):
    """ Run the parallel Randomized Progressive Hedging scheme on pb.

    Needs at least 2 workers (nworkers defaults to the number of CPUs, or
    to the size of the given executor). See solve_randomized_sync for the
    other arguments; c is the step of the updates.

    Returns:
        np.ndarray: a feasible (nscenarios, n) point
    """
    options = dict(mu=mu, qdistr=qdistr, c=c, maxtime=maxtime,
                   maxcomputingtime=maxcomputingtime, maxiter=maxiter,
                   printlev=printlev, printstep=printstep, seed=seed,
                   solver_name=solver_name, solver_options=solver_options,
                   tee=tee, nworkers=nworkers, worker_kind=worker_kind)
    rph = RandomizedPar(options, pb,
                        subproblem_solver=subproblem_solver,
                        extensions=extensions,
                        hist=hist,
                        callback=callback,
                        executor=executor)
    return rph.rph_main()
