###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
''' Worker pools for the parallel and asynchronous drivers.

    Workers only ever see value copies: a task is (id_scen, target, mu,
    dual) and its result is (id_scen, y, solve_time). The problem and the
    subproblem solver are installed once per worker by the pool
    initializer; with a user supplied executor they travel with each task.
'''
import copy
import logging
import os
import threading
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor

logger = logging.getLogger("rphsppy.utils.workers")

WORKER_KINDS = ("process", "thread", "mpi")

_local = threading.local()


def _init_worker(pb, subproblem_solver):
    # one solver copy per worker thread so that plugins are never shared
    _local.pb = pb
    _local.subproblem_solver = copy.copy(subproblem_solver)


def _solve(pb, subproblem_solver, id_scen, target, mu, dual):
    start = time.time()
    y = subproblem_solver.solve(pb, id_scen, target, mu, dual)
    return id_scen, y, time.time() - start


def solve_task(id_scen, target, mu, dual=None):
    """ Task run in a worker set up by _init_worker"""
    return _solve(_local.pb, _local.subproblem_solver, id_scen, target, mu, dual)


def solve_task_with(pb, subproblem_solver, id_scen, target, mu, dual=None):
    """ Task for an executor we did not create"""
    return _solve(pb, subproblem_solver, id_scen, target, mu, dual)


def check_workers(nworkers):
    if nworkers is None or nworkers < 2:
        raise ValueError(f"The parallel and asynchronous drivers need at least "
                         f"2 workers; got nworkers={nworkers}")
    return int(nworkers)


def default_nworkers(executor=None):
    if executor is not None and getattr(executor, "_max_workers", None) is not None:
        return executor._max_workers
    return os.cpu_count()


def make_executor(kind, nworkers, pb, subproblem_solver):
    """ Create an executor whose workers hold pb and subproblem_solver.

    Args:
        kind (str): "process", "thread" or "mpi"
        nworkers (int): number of workers
        pb (Problem): the problem
        subproblem_solver (SubproblemSolver): the solver for the workers

    Returns:
        concurrent.futures.Executor
    """
    initargs = (pb, subproblem_solver)
    if kind == "process":
        return ProcessPoolExecutor(max_workers=nworkers,
                                   initializer=_init_worker,
                                   initargs=initargs)
    elif kind == "thread":
        return ThreadPoolExecutor(max_workers=nworkers,
                                  thread_name_prefix="rphsppy-worker",
                                  initializer=_init_worker,
                                  initargs=initargs)
    elif kind == "mpi":
        # optional dependency (pip install rph-sppy[mpi])
        from mpi4py.futures import MPIPoolExecutor
        return MPIPoolExecutor(max_workers=nworkers,
                               initializer=_init_worker,
                               initargs=initargs)
    else:
        raise ValueError(f"Unknown worker kind '{kind}'; use one of {WORKER_KINDS}")


class WorkerPool:
    """ The coordinator's handle on its workers.

    Args:
        pb (Problem): the problem
        subproblem_solver (SubproblemSolver): used by the workers
        nworkers (int, optional): number of workers; by default the number
            of CPUs (or the size of the given executor)
        worker_kind (str, optional): "process" (default), "thread" or "mpi"
        executor (Executor, optional): use this executor instead of creating
            one; it is not shut down by the pool

    Raises:
        ValueError: for fewer than 2 workers or an unknown worker kind, or for
            thread workers (or a ThreadPoolExecutor) with a solver that is
            not thread_safe
    """
    def __init__(self, pb, subproblem_solver, nworkers=None,
                 worker_kind="process", executor=None):
        if nworkers is None:
            nworkers = default_nworkers(executor)
        self.nworkers = check_workers(nworkers)
        if worker_kind not in WORKER_KINDS:
            raise ValueError(f"Unknown worker kind '{worker_kind}'; "
                             f"use one of {WORKER_KINDS}")
        threaded = (isinstance(executor, ThreadPoolExecutor) if executor is not None
                    else worker_kind == "thread")
        if threaded and not getattr(subproblem_solver, "thread_safe", True):
            raise ValueError(f"{subproblem_solver.__class__.__name__} is not thread safe; "
                             "use worker_kind=\"process\" or \"mpi\"")
        self.pb = pb
        self.subproblem_solver = subproblem_solver
        self.worker_kind = worker_kind
        self.owned = executor is None
        self._executor = executor

    @property
    def executor(self):
        if self._executor is None:
            logger.debug(f"Starting {self.nworkers} {self.worker_kind} workers")
            self._executor = make_executor(self.worker_kind, self.nworkers,
                                           self.pb, self.subproblem_solver)
        return self._executor

    def submit(self, id_scen, target, mu, dual=None):
        """ Returns a Future of (id_scen, y, solve_time)"""
        if self.owned:
            return self.executor.submit(solve_task, id_scen, target, mu, dual)
        return self.executor.submit(solve_task_with, self.pb,
                                    self.subproblem_solver,
                                    id_scen, target, mu, dual)

    def shutdown(self, abandon=False):
        """ Stop owned workers; with abandon, pending tasks are cancelled
        and running ones are not waited for.
        """
        if self.owned and self._executor is not None:
            self._executor.shutdown(wait=not abandon, cancel_futures=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(abandon=exc_type is not None)
