###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Randomized Progressive Hedging, asynchronous: the workers are kept busy
# and every result is applied as soon as it arrives, whatever the number
# of updates made since its dispatch (the delay tau).

import logging
import math
from concurrent.futures import FIRST_COMPLETED, wait

import numpy as np

import rphsppy.rphbase
import rphsppy.utils.sampling as sampling
from rphsppy.convergers.budget import Termination, should_continue
from rphsppy.rphbase import ComputingClock, remaining_timeout

logger = logging.getLogger("rphsppy.opt.randasync")


class RandomizedAsync(rphsppy.rphbase.RPHBase):
    """ Asynchronous randomized PH. See RPHBase for list of args.

    Up to nworkers tasks are in flight, each on its own scenario (a
    scenario is leased from dispatch until its result is applied). A
    result for s read x = P(z)[s] at dispatch and is applied as
    z[s] += eta(tau) (y - x) where tau counts the updates applied in
    between. eta is the stepsize option when given, otherwise
    c * nscenarios * qmin / (2 tau sqrt(qmin) + 1), qmin being the
    smallest positive sampling probability.

    Attributes (partial list):
        busy (set of int): leased scenarios
    """
    algoname = "Randomized Progressive Hedging - asynchronous"
    uses_workers = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.qmin = sampling.qmin(self.q)
        self.busy = set()
        self._in_flight = dict()

    def algo_stats(self):
        stats = super().algo_stats()
        stats["c"] = self.options["c"]
        stats["stepsize"] = self.options["stepsize"]
        return stats

    def stepsize(self, tau):
        """ The step applied to an update computed tau updates ago"""
        if self.options["stepsize"] is not None:
            return self.options["stepsize"]
        return (self.options["c"] * self.nscenarios * self.qmin
                / (2 * tau * math.sqrt(self.qmin) + 1))

    def dispatch(self):
        """ Fill the free workers with tasks on scenarios that are not busy
        """
        while (len(self._in_flight) < self.pool.nworkers
               and self.state.it + len(self._in_flight) < self.budgets.maxiter):
            id_scen = self.sampler.sample_available(self.busy)
            if id_scen is None:
                break
            x_scen = self.averaged_trajectory(id_scen)
            self._ext("pre_solve", id_scen)
            future = self.pool.submit(id_scen, self.prox_target(id_scen, x_scen), self.mu)
            self.busy.add(id_scen)
            self._in_flight[future] = (id_scen, x_scen, self.state.it)

    def receive(self, future):
        """ Apply the result of a finished task and release its scenario
        """
        id_scen, x_scen, it_dispatch = self._in_flight.pop(future)
        self.busy.discard(id_scen)
        y = self.task_result(future, id_scen)
        if y is None:
            return False
        tau = self.state.it - it_dispatch
        self._ext("post_solve", id_scen, y)
        self.apply_update(id_scen, x_scen, y, step=self.stepsize(tau))
        self.state.it += 1
        if self.hist is not None:
            self.hist.record_delay(tau)
        return True

    def iterk_loop(self):
        clock = ComputingClock(self.state)
        self.dispatch()
        while self._in_flight and should_continue(self.state, self.budgets):
            done, _ = wait(self._in_flight,
                           timeout=remaining_timeout(self.state, self.budgets),
                           return_when=FIRST_COMPLETED)
            if len(done) == 0:
                # out of wall clock time with every task still running
                logger.debug(f"Time limit reached with {len(self._in_flight)} "
                             f"tasks in flight at iteration {self.state.it}")
                self.state.stop_reason = Termination.TIMEOUT
                break
            for future in done:
                if not self.receive(future):
                    continue
                clock.charge()

                self._ext("enditer")

                # Print and logs
                if self.state.it % self.printstep == 0:
                    self.log_iteration()
                    clock.mark()
                if not should_continue(self.state, self.budgets):
                    break
            if should_continue(self.state, self.budgets):
                self.dispatch()
        clock.charge()
        # whatever is left is abandoned
        self._in_flight.clear()
        self.busy.clear()


def solve_randomized_async(pb,
                           mu=3,
                           qdistr="pdistr",
                           c=0.9,
                           stepsize=None,
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
    """ Run the asynchronous Randomized Progressive Hedging scheme on pb.

    Needs at least 2 workers. stepsize fixes the step of every update;
    when None, the step decreases with the delay of the update (see
    RandomizedAsync). See solve_randomized_sync for the other arguments.

    Returns:
        np.ndarray: a feasible (nscenarios, n) point
    """
    options = dict(mu=mu, qdistr=qdistr, c=c, stepsize=stepsize,
                   maxtime=maxtime, maxcomputingtime=maxcomputingtime,
                   maxiter=maxiter, printlev=printlev, printstep=printstep,
                   seed=seed, solver_name=solver_name,
                   solver_options=solver_options, tee=tee,
                   nworkers=nworkers, worker_kind=worker_kind)
    rph = RandomizedAsync(options, pb,
                          subproblem_solver=subproblem_solver,
                          extensions=extensions,
                          hist=hist,
                          callback=callback,
                          executor=executor)
    return rph.rph_main()
