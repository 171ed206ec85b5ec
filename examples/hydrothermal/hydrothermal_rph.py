###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Hydro-thermal scheduling, five stages and sixteen scenarios; compares a
# consensus method with the extensive form, e.g.
#   python hydrothermal_rph.py --solver-name ipopt --method randasync --nworkers 4 --maxtime 60

from rphsppy.utils import config
from rphsppy.opt.ef import solve_direct
from rphsppy.opt.ph import solve_progressivehedging
from rphsppy.opt.randasync import solve_randomized_async
from rphsppy.opt.randpar import solve_randomized_par
from rphsppy.opt.randsync import solve_randomized_sync
from rphsppy.tests.examples.hydrothermal import build_hydrothermal_problem
from rphsppy.utils.history import History

write_history = True


def _parse_args():
    cfg = config.Config()
    cfg.popular_args()
    cfg.ph_args()
    cfg.randomized_args()
    cfg.async_args()
    cfg.worker_args()
    cfg.history_args()
    cfg.EF_base()
    cfg.add_to_config("method",
                      description="ph, randsync, randpar or randasync (default ph)",
                      domain=str,
                      default="ph")
    cfg.add_to_config("nstages",
                      description="number of stages (default 5)",
                      domain=int,
                      default=5)
    cfg.parse_command_line("hydrothermal_rph")
    cfg.checker()
    return cfg


def main():
    cfg = _parse_args()
    pb = build_hydrothermal_problem(cfg.nstages)

    EF_solver_name = cfg.EF_solver_name if cfg.EF_solver_name is not None else cfg.solver_name
    xdirect = solve_direct(pb, solver_name=EF_solver_name,
                           solver_options=cfg.EF_solver_options,
                           printlev=cfg.printlev, tee=cfg.EF_tee)

    hist = History(approxsol=xdirect)
    common = dict(mu=cfg.mu, maxtime=cfg.maxtime, maxcomputingtime=cfg.maxcomputingtime,
                  maxiter=cfg.maxiter, printlev=cfg.printlev, printstep=cfg.printstep,
                  hist=hist, solver_name=cfg.solver_name,
                  solver_options=cfg.solver_options, tee=cfg.tee)
    randomized = dict(qdistr=cfg.qdistr, seed=cfg.seed)
    workers = dict(c=cfg.c, nworkers=cfg.nworkers, worker_kind=cfg.worker_kind)

    if cfg.method == "ph":
        x = solve_progressivehedging(pb, eps_primal=cfg.eps_primal,
                                     eps_dual=cfg.eps_dual, **common)
    elif cfg.method == "randsync":
        x = solve_randomized_sync(pb, **randomized, **common)
    elif cfg.method == "randpar":
        x = solve_randomized_par(pb, **randomized, **workers, **common)
    elif cfg.method == "randasync":
        x = solve_randomized_async(pb, stepsize=cfg.stepsize, **randomized,
                                   **workers, **common)
    else:
        raise RuntimeError(f"Unknown method {cfg.method}")

    print(f"Direct objective value: {pb.objective_value(xdirect)}")
    print(f"{cfg.method} objective value: {pb.objective_value(x)}")
    print(f"Distance to the direct solution: {hist['dist_opt'][-1]}")

    if write_history:
        fname = cfg.history_csv if cfg.history_csv is not None else f"hydrothermal_{cfg.method}.csv"
        hist.write_csv(fname)


if __name__ == "__main__":
    main()
