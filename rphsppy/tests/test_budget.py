###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Checks on the loop predicate and the PH residual converger.

import math
import unittest

from rphsppy.convergers.budget import (
    Budgets,
    LoopState,
    Termination,
    should_continue,
    termination_reason,
)
from rphsppy.convergers.primal_dual_converger import PrimalDualConverger


class Test_budget(unittest.TestCase):
    """ should_continue and termination_reason"""

    def test_fresh_loop_continues(self):
        state = LoopState(tinit=100.0)
        budgets = Budgets(maxiter=10, maxtime=5, maxcomputingtime=1)
        self.assertTrue(should_continue(state, budgets, now=101.0))
        self.assertIsNone(termination_reason(state, budgets, now=101.0))

    def test_each_budget(self):
        budgets = Budgets(maxiter=10, maxtime=5, maxcomputingtime=1)
        state = LoopState(tinit=100.0)
        state.it = 10
        self.assertEqual(termination_reason(state, budgets, now=101.0), Termination.MAXITER)
        state.it = 3
        self.assertEqual(termination_reason(state, budgets, now=105.0), Termination.TIMEOUT)
        state.computingtime = 1.5
        self.assertEqual(termination_reason(state, budgets, now=101.0),
                         Termination.MAXCOMPUTINGTIME)
        state.converged = True
        self.assertEqual(termination_reason(state, budgets, now=101.0), Termination.CONVERGED)
        self.assertFalse(should_continue(state, budgets, now=101.0))

    def test_stop_reason_wins(self):
        state = LoopState()
        state.stop_reason = Termination.TIMEOUT
        self.assertEqual(termination_reason(state, Budgets()), Termination.TIMEOUT)

    def test_unlimited(self):
        state = LoopState()
        state.it = 10**9
        self.assertTrue(should_continue(state, Budgets()))
        self.assertEqual(state.remaining_time(Budgets()), math.inf)

    def test_negative_budget(self):
        with self.assertRaises(ValueError):
            Budgets(maxiter=-1)


class _FakePH:
    def __init__(self, primres, dualres):
        self.options = {"eps_primal": 1e-4, "eps_dual": 1e-3, "printlev": 0}
        self.primres = primres
        self.dualres = dualres


class Test_primal_dual_converger(unittest.TestCase):
    """ Both residuals must be below their tolerance"""

    def test_converger(self):
        self.assertTrue(PrimalDualConverger(_FakePH(1e-5, 1e-4)).is_converged())
        self.assertFalse(PrimalDualConverger(_FakePH(1e-3, 1e-4)).is_converged())
        conv = PrimalDualConverger(_FakePH(1e-5, 1e-2))
        self.assertFalse(conv.is_converged())
        self.assertEqual(conv.conv, 1e-2)
        conv._ph.dualres = 1e-4
        self.assertTrue(conv.is_converged())
        self.assertEqual(conv.conv_history, [1e-2, 1e-4])
        conv.post_loops()


if __name__ == '__main__':
    unittest.main()
