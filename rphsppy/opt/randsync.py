###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Randomized Progressive Hedging, synchronous: one scenario per iteration

import time

import numpy as np

import rphsppy.rphbase
from rphsppy.convergers.budget import should_continue


class RandomizedSync(rphsppy.rphbase.RPHBase):
    """ Randomized PH with sequential solves. See RPHBase for list of args.

    Each iteration samples one scenario s from q and does
    z[s] += y - x with x = P(z)[s] and y the prox of f_s at 2x - z[s].
    """
    algoname = "Randomized Progressive Hedging - synchronous"

    def iterk_loop(self):
        while should_continue(self.state, self.budgets):
            self.state.it += 1
            it_startcomputingtime = time.time()

            id_scen = self.sampler.sample()

            ## Projection
            x_scen = self.averaged_trajectory(id_scen)

            ## Subproblem solve
            y = self.solve_one(id_scen, self.prox_target(id_scen, x_scen))

            ## Global variable update
            self.apply_update(id_scen, x_scen, y)

            self.state.computingtime += time.time() - it_startcomputingtime

            self._ext("enditer")

            # Print and logs
            if self.state.it % self.printstep == 0:
                self.log_iteration()


def solve_randomized_sync(pb,
                          mu=3,
                          qdistr="pdistr",
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
                          extensions=None):
    """ Run the synchronous Randomized Progressive Hedging scheme on pb.

    Stops on maxiter, maxtime or maxcomputingtime only. qdistr is
    "pdistr" (sample by scenario probability), "unifdistr" or an array of
    sampling probabilities; seed defaults to 1234.

    Returns:
        np.ndarray: a feasible (nscenarios, n) point
    """
    options = dict(mu=mu, qdistr=qdistr, maxtime=maxtime,
                   maxcomputingtime=maxcomputingtime, maxiter=maxiter,
                   printlev=printlev, printstep=printstep, seed=seed,
                   solver_name=solver_name, solver_options=solver_options,
                   tee=tee)
    rph = RandomizedSync(options, pb,
                         subproblem_solver=subproblem_solver,
                         extensions=extensions,
                         hist=hist,
                         callback=callback)
    return rph.rph_main()
