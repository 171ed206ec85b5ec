###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Driver for the three scenario example; e.g.
#   python simple_rph.py --method randasync --nworkers 2 --maxiter 2000 --solver-name ipopt
#   python simple_rph.py --method ph --closed-form

from rphsppy.utils import config
from rphsppy.opt.ef import solve_direct
from rphsppy.opt.ph import PH
from rphsppy.opt.randasync import RandomizedAsync
from rphsppy.opt.randpar import RandomizedPar
from rphsppy.opt.randsync import RandomizedSync
from rphsppy.tests.examples.simple import SimpleProxSolver, build_simpleexample
from rphsppy.utils.history import History

DRIVERS = {"ph": PH,
           "randsync": RandomizedSync,
           "randpar": RandomizedPar,
           "randasync": RandomizedAsync}


def _parse_args():
    cfg = config.Config()
    cfg.popular_args()
    cfg.ph_args()
    cfg.randomized_args()
    cfg.async_args()
    cfg.worker_args()
    cfg.history_args()
    cfg.add_to_config("method",
                      description=f"one of {list(DRIVERS)} or direct (default ph)",
                      domain=str,
                      default="ph")
    cfg.add_to_config("closed_form",
                      description="solve the subproblems in closed form instead of "
                      "with solver_name",
                      domain=bool,
                      default=False)
    cfg.parse_command_line("simple_rph")
    cfg.checker()
    return cfg


def main():
    cfg = _parse_args()
    pb = build_simpleexample()

    if cfg.method == "direct":
        x = solve_direct(pb, solver_name=cfg.solver_name,
                         solver_options=cfg.solver_options,
                         printlev=cfg.printlev, tee=cfg.tee)
    elif cfg.method in DRIVERS:
        subproblem_solver = SimpleProxSolver() if cfg.closed_form else None
        hist = History()
        driver = DRIVERS[cfg.method](cfg, pb, subproblem_solver=subproblem_solver,
                                     hist=hist)
        if cfg.method == "ph":
            x = driver.ph_main()
        else:
            x = driver.rph_main()
        print(f"Stopped on {driver.termination.value} after {driver.state.it} iterations")
    else:
        raise RuntimeError(f"Unknown method {cfg.method}")

    print("Solution:")
    print(x)
    print(f"Objective value: {pb.objective_value(x)}")


if __name__ == "__main__":
    main()
