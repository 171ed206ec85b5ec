###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################

import pyomo.environ as pyo

def get_solver(persistent_OK=True):
    """ The first available solver that takes quadratic objectives.

    Returns:
        solver_available, solver_name, persistent_available, persistent_solver_name
    """
    solvers = ["cplex","gurobi","xpress"]
    if persistent_OK:
        solvers = [n+e for e in ('_persistent', '') for n in solvers]
    solvers += ["gurobi_direct", "ipopt"]

    for solver_name in solvers:
        try:
            solver_available = pyo.SolverFactory(solver_name).available(exception_flag=False)
        except Exception:
            solver_available = False
        if solver_available:
            break

    if '_persistent' in solver_name:
        persistent_solver_name = solver_name
    else:
        persistent_solver_name = solver_name.replace("_direct", "")+"_persistent"
    try:
        persistent_available = pyo.SolverFactory(persistent_solver_name).available(exception_flag=False)
    except Exception:
        persistent_available = False

    return solver_available, solver_name, persistent_available, persistent_solver_name
