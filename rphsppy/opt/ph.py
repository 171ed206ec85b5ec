###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Classical (synchronous, sequential) Progressive Hedging

import time

import numpy as np

import rphsppy.spbase
from rphsppy import global_toc
from rphsppy.convergers.budget import should_continue
from rphsppy.convergers.norms_and_residuals import dual_residual, primal_residual
from rphsppy.convergers.primal_dual_converger import PrimalDualConverger
from rphsppy.projection import nonanticipatory_projection

_PH_DEFAULTS = dict(rphsppy.spbase._COMMON_DEFAULTS,
                    eps_primal=1e-4,
                    eps_dual=1e-4)


############################################################################
class PH(rphsppy.spbase.SPBase):
    """ PH. See SPBase for list of args.

    Args:
        ph_converger (Converger class, optional): decides convergence; by
            default PrimalDualConverger (both residuals below eps)

    Attributes (partial list):
        x (np.ndarray): projected iterate
        y (np.ndarray): subproblem solutions of the last iteration
        u (np.ndarray): multipliers
        primres, dualres (float): residuals of the last iteration
    """
    default_options = _PH_DEFAULTS

    def __init__(
            self,
            options,
            problem,
            subproblem_solver=None,
            extensions=None,
            extension_kwargs=None,
            hist=None,
            callback=None,
            ph_converger=None,
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
        self.ph_converger = PrimalDualConverger if ph_converger is None else ph_converger
        self.convobject = None

        self.y = np.zeros((self.nscenarios, self.n))
        self.x = np.zeros((self.nscenarios, self.n))
        self.u = np.zeros((self.nscenarios, self.n))
        self.u_old = np.zeros((self.nscenarios, self.n))
        self.primres = self.dualres = np.inf

    def solve_loop(self):
        """ Solve every scenario at target x[s] with dual u[s], into y.
        Exactly nscenarios solves.
        """
        for id_scen in range(self.nscenarios):
            self.y[id_scen] = self.solve_one(id_scen, self.x[id_scen],
                                             dual=self.u[id_scen])

    def Iter0(self):
        """ Solve every scenario at x = 0, u = 0, project and set u.
        """
        if self.printlev > 0:
            print("Initialisation... ", end="", flush=True)

        self.solve_loop()

        # projection on non anticipatory subspace
        nonanticipatory_projection(self.x, self.pb, self.y)

        # multiplier update
        self.u[:] = (1 / self.mu) * (self.y - self.x)

        self.primres = primal_residual(self.pb, self.x, self.y)
        self.dualres = dual_residual(self.pb, self.u, np.zeros_like(self.u), self.mu)

        if self.printlev > 0:
            print("done")

    def log_iteration(self):
        dot_xu = self.pb.dot(self.x, self.u)
        objval = self.record_log(self.x, primres=self.primres, dualres=self.dualres)
        if self.printlev > 0:
            print("%3i   %.10e  %.10e   % .3e % .16e"
                  % (self.state.it, self.primres, self.dualres, dot_xu, objval))

    def iterk_loop(self):
        """ Loop for the main iterations (k>0) of PH.
        """
        while should_continue(self.state, self.budgets):
            self.state.it += 1
            it_startcomputingtime = time.time()
            global_toc(f"Initiating PH Iteration {self.state.it}\n", self.printlev > 2)

            self.u_old[:] = self.u

            self.solve_loop()

            # projection on non anticipatory subspace
            nonanticipatory_projection(self.x, self.pb, self.y)

            # multiplier update
            self.u += (1 / self.mu) * (self.y - self.x)

            self.primres = primal_residual(self.pb, self.x, self.y)
            self.dualres = dual_residual(self.pb, self.u, self.u_old, self.mu)

            self.state.computingtime += time.time() - it_startcomputingtime

            self._ext("enditer")
            self.state.converged = self.convobject.is_converged()

            # Print and logs
            if self.state.it % self.printstep == 0:
                self.log_iteration()

    def ph_main(self, finalize=True):
        """ Execute the PH algorithm.

        Args:
            finalize (bool, optional, default=True):
                If True, call post_loops (extensions and converger wrap up)

        Returns:
            np.ndarray: the last projected iterate x
        """
        self.pb.display_algopb_stats("Progressive Hedging", self.printlev,
                                     eps_primal=self.options["eps_primal"],
                                     eps_dual=self.options["eps_dual"],
                                     mu=self.mu,
                                     maxtime=self.budgets.maxtime,
                                     maxcomputingtime=self.budgets.maxcomputingtime,
                                     maxiter=self.budgets.maxiter)
        # logstep counts subproblem solves
        self.start_loop(logstep=self.printstep * self.nscenarios)
        self.convobject = self.ph_converger(self)

        self._ext("pre_iter0")
        self.Iter0()
        self._ext("post_iter0")
        self.state.converged = self.convobject.is_converged()

        if self.printlev > 0:
            print(" it   primal res        dual res            dot(x,u)   objective")
        self.log_iteration()

        self.iterk_loop()

        ## Final print
        if self.state.it % self.printstep != 0:
            self.log_iteration()

        self.report_times()
        if finalize:
            self.post_loops(self.x)
            self.convobject.post_loops()
        return self.x


def solve_progressivehedging(pb,
                             eps_primal=1e-4,
                             eps_dual=1e-4,
                             mu=3,
                             maxtime=3600,
                             maxcomputingtime=np.inf,
                             maxiter=1000,
                             printlev=1,
                             printstep=1,
                             hist=None,
                             solver_name=None,
                             solver_options=None,
                             tee=False,
                             callback=None,
                             subproblem_solver=None,
                             extensions=None):
    """ Run the classical Progressive Hedging scheme on problem pb.

    Stops when the primal residual is below eps_primal and the dual
    residual below eps_dual, or when maxiter, maxtime (wall clock, in
    seconds) or maxcomputingtime (time in iterations, excluding INIT and
    logging) is reached. Logs every printstep iterations; printlev=0 mutes
    the output.

    Returns:
        np.ndarray: a feasible (nscenarios, n) point
    """
    options = dict(eps_primal=eps_primal, eps_dual=eps_dual, mu=mu,
                   maxtime=maxtime, maxcomputingtime=maxcomputingtime,
                   maxiter=maxiter, printlev=printlev, printstep=printstep,
                   solver_name=solver_name, solver_options=solver_options,
                   tee=tee)
    ph = PH(options, pb,
            subproblem_solver=subproblem_solver,
            extensions=extensions,
            hist=hist,
            callback=callback)
    return ph.ph_main()
