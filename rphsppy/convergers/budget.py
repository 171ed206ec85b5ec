###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
''' Budgets and the loop predicate shared by all drivers.

    Every driver keeps a LoopState and asks should_continue at each
    iteration boundary; termination_reason says which exit was taken.
    Running out of budget is a normal termination, not an error.
'''

import enum
import math
import time


class Termination(enum.Enum):
    CONVERGED = "converged"
    MAXITER = "maximum iterations"
    TIMEOUT = "maximum time"
    MAXCOMPUTINGTIME = "maximum computing time"


class Budgets:
    """ Limits on a run.

    Args:
        maxiter (int or float): maximum number of iterations (updates)
        maxtime (float): wall clock limit in seconds, from the start of INIT
        maxcomputingtime (float): limit on the time spent in iterations,
            which excludes INIT, logging and feasibility projections
    """
    def __init__(self, maxiter=math.inf, maxtime=math.inf, maxcomputingtime=math.inf):
        if maxiter < 0 or maxtime < 0 or maxcomputingtime < 0:
            raise ValueError(f"Budgets must be nonnegative; got maxiter={maxiter}, "
                             f"maxtime={maxtime}, maxcomputingtime={maxcomputingtime}")
        self.maxiter = maxiter
        self.maxtime = maxtime
        self.maxcomputingtime = maxcomputingtime

    def __repr__(self):
        return (f"Budgets(maxiter={self.maxiter}, maxtime={self.maxtime}, "
                f"maxcomputingtime={self.maxcomputingtime})")


class LoopState:
    """ What the predicate needs to know about a running loop.

    Args:
        tinit (float, optional): time.time() at the start; default now
    """
    def __init__(self, tinit=None):
        self.tinit = time.time() if tinit is None else tinit
        self.it = 0
        self.computingtime = 0.0
        self.converged = False
        # set by a driver that had to stop on its own (e.g. a timed out wait)
        self.stop_reason = None

    def elapsed(self, now=None):
        return (time.time() if now is None else now) - self.tinit

    def remaining_time(self, budgets, now=None):
        return max(0.0, budgets.maxtime - self.elapsed(now))

    def __repr__(self):
        return (f"LoopState(it={self.it}, computingtime={self.computingtime:.3f}, "
                f"elapsed={self.elapsed():.3f}, converged={self.converged})")


def termination_reason(state, budgets, now=None):
    """ Why the loop must stop, or None if it may go on.

    Args:
        state (LoopState): current loop state
        budgets (Budgets): the limits
        now (float, optional): time.time() to use (for tests)

    Returns:
        Termination or None
    """
    if state.stop_reason is not None:
        return state.stop_reason
    if state.converged:
        return Termination.CONVERGED
    if state.it >= budgets.maxiter:
        return Termination.MAXITER
    if state.elapsed(now) >= budgets.maxtime:
        return Termination.TIMEOUT
    if state.computingtime >= budgets.maxcomputingtime:
        return Termination.MAXCOMPUTINGTIME
    return None


def should_continue(state, budgets, now=None):
    return termination_reason(state, budgets, now=now) is None
