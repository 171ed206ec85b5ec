###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
import rphsppy.convergers.converger
from rphsppy import global_toc

class PrimalDualConverger(rphsppy.convergers.converger.Converger):
    """ Convergence checker for the PH residuals.
        Primal residual is ||x - y||_p and the dual residual is
        (1/mu) ||u - u_old||_p (see norms_and_residuals); both must drop
        strictly below their tolerance (options eps_primal and eps_dual).
    """
    def __init__(self, ph):
        super().__init__(ph)
        self._ph = ph
        self.eps_primal = ph.options["eps_primal"]
        self.eps_dual = ph.options["eps_dual"]

    def is_converged(self):
        """ check for convergence
        Args:
            self (object): create by prep

        Returns:
           converged?: True if converged, False otherwise
        """
        primres, dualres = self._ph.primres, self._ph.dualres
        self.record(max(primres, dualres))
        converged = primres < self.eps_primal and dualres < self.eps_dual
        if converged:
            global_toc(f"Residuals primal={primres:.3e} dual={dualres:.3e} dropped "
                       f"below eps_primal={self.eps_primal} eps_dual={self.eps_dual}",
                       self._ph.options["printlev"] > 1)
        return converged
