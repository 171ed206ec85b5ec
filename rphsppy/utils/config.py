###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# A class derived from pyomo.common.config with supporting member functions.
# NOTE: the xxxx_args() naming convention is used for groups of options.

""" Notes
Assemble the args you want and call parse_command_line, which creates an
argparse parser, does the parsing and assigns the values, e.g.:

    cfg = config.Config()
    cfg.popular_args()
    cfg.randomized_args()
    cfg.parse_command_line("simple_randsync")

If you want to add args, call add_to_config.

The option names are the keyword arguments of the solve_* functions
(rphsppy.opt), so a populated Config can be passed to a driver class as
its options.
"""

import argparse
import math
import pyomo.common.config as pyofig

from rphsppy.utils.workers import WORKER_KINDS

# class to inherit from ConfigDict with a name field
class Config(pyofig.ConfigDict):
    # remember that the parent uses slots

    #===============
    def add_to_config(self, name, description, domain, default,
                      argparse=True,
                      complain=False,
                      argparse_args=None):
        """ Add an arg to the self dict.
        Args:
            name (str): the argument name, underscore seperated
            description (str): free text description
            domain (type): see pyomo config docs
            default (domain): value before argparse
            argparse (bool): if True put on command ine
            complain (bool): if True, output a message for a duplicate
            argparse_args (dict): args to pass to argpars (option; e.g. required, or group)
        """
        if name in self:
            if complain:
                print(f"Duplicate {name} will not be added to self.")
        else:
            c = self.declare(name, pyofig.ConfigValue(
                description = description,
                domain = domain,
                default = default))
            if argparse:
                if argparse_args is not None:
                    c.declare_as_argument(**argparse_args)
                else:
                    c.declare_as_argument()


    #===============
    def add_and_assign(self, name, description, domain, default, value, complain=True):
        """ Add an arg to the self dict and assign it a value
        Args:
            name (str): the argument name, underscore separated
            description (str): free text description
            domain (type): see pyomo config docs
            default (domain): probably unused, but here to avoid cut-and-paste errors
            value (domain): the value to assign
            complain (bool): if True, raise for a duplicate
        """
        if name in self:
            if complain:
                raise RuntimeError(f"Trying to add duplicate {name=} to cfg {value=}")
        else:
            self.add_to_config(name, description, domain, default, argparse=False)
            self[name] = value


    #===============
    def quick_assign(self, name, domain, value):
        """ mimic dict assignment with fewer args
        Args:
            name (str): the argument name, underscore separated
            domain (type): see pyomo config docs
            value (domain): the value to assign
        """
        if name not in self:
            self.add_and_assign(name, f"field for {name}", domain, None, value)
        else:
            self[name] = value


    #===============
    def get(self, name, ifmissing=None):
        """ replcate the behavior of dict get"""
        if name in self:
            return self[name]
        else:
            return ifmissing

    #===============
    def checker(self):
        """Verify that options *selected* make sense with respect to each other
        """
        def _bad_options(msg):
            raise ValueError(f"Options do not make sense:\n{msg}")

        if self.get("mu") is not None and self.get("mu") <= 0:
            _bad_options(f"mu must be positive, got {self.get('mu')}")
        if self.get("printstep") is not None and self.get("printstep") < 1:
            _bad_options(f"printstep must be at least 1, got {self.get('printstep')}")
        if self.get("c") is not None and self.get("c") <= 0:
            _bad_options(f"c must be positive, got {self.get('c')}")
        if self.get("stepsize") is not None and self.get("stepsize") <= 0:
            _bad_options(f"stepsize must be positive, got {self.get('stepsize')}")
        if self.get("worker_kind") is not None and self.get("worker_kind") not in WORKER_KINDS:
            _bad_options(f"worker_kind must be one of {WORKER_KINDS}")
        if self.get("nworkers") is not None and self.get("nworkers") < 2:
            _bad_options("the parallel and asynchronous drivers need nworkers >= 2")


    def add_solver_specs(self, prefix=""):
        sstr = f"{prefix}_solver" if prefix != "" else "solver"
        self.add_to_config(f"{sstr}_name",
                            description= "solver name (default None)",
                            domain = str,
                            default=None)

        self.add_to_config(f"{sstr}_options",
                            description= "solver options; space delimited with = for values (default None)",
                            domain = str,
                            default=None)

    def popular_args(self):
        self.add_to_config("maxiter",
                            description="max iterations (default None: 1000 for PH, "
                            "100000 for the randomized methods)",
                            domain=int,
                            default=None)

        self.add_to_config("maxtime",
                            description="wall clock limit in seconds (default 3600)",
                            domain=float,
                            default=3600.0)

        self.add_to_config("maxcomputingtime",
                            description="limit on the time spent in iterations, excluding "
                            "initialisation and logging (default inf)",
                            domain=float,
                            default=math.inf)

        self.add_solver_specs(prefix="")

        self.add_to_config("mu",
                            description="proximal parameter mu (default 3)",
                            domain=float,
                            default=3.0)

        self.add_to_config("printlev",
                            description="0 mutes the iteration log (default 1)",
                            domain=int,
                            default=1)

        self.add_to_config("printstep",
                            description="iterations between two log events (default 1)",
                            domain=int,
                            default=1)

        self.add_to_config("tee",
                              description="show the subproblem solver output",
                              domain=bool,
                              default=False)

    def ph_args(self):
        self.add_to_config("eps_primal",
                            description="For PH, tolerance on the primal residual (default 1e-4)",
                            domain=float,
                            default=1e-4)

        self.add_to_config("eps_dual",
                            description="For PH, tolerance on the dual residual (default 1e-4)",
                            domain=float,
                            default=1e-4)

    def randomized_args(self):
        self.add_to_config("qdistr",
                            description="scenario sampling distribution: pdistr (scenario "
                            "probabilities) or unifdistr (default pdistr)",
                            domain=str,
                            default="pdistr")

        self.add_to_config("seed",
                            description="Seed for scenario sampling (default 1234)",
                            domain=int,
                            default=1234)

        self.add_to_config("c",
                            description="step factor of the parallel and asynchronous "
                            "updates (default 0.9)",
                            domain=float,
                            default=0.9)

    def async_args(self):
        self.add_to_config("stepsize",
                            description="fixed step of the asynchronous update; "
                            "if None a delay dependent step is used (default None)",
                            domain=float,
                            default=None)

    def worker_args(self):
        self.add_to_config("nworkers",
                            description="number of workers (default number of CPUs)",
                            domain=int,
                            default=None)

        self.add_to_config("worker_kind",
                            description=f"kind of worker pool, one of {WORKER_KINDS}; thread "
                            "needs a thread safe subproblem solver, which Pyomo "
                            "solvers are not (default process)",
                            domain=str,
                            default="process")

    def history_args(self):
        self.add_to_config("history_csv",
                            description="write the run history to this csv file (default None)",
                            domain=str,
                            default=None)

    def EF_base(self):
        self.add_solver_specs(prefix="EF")
        self.add_to_config("EF_tee",
                              description="show the extensive form solver output",
                              domain=bool,
                              default=False)

    #================
    def create_parser(self,progname=None):
        # seldom used
        if len(self) == 0:
            raise RuntimeError("create parser called before Config is populated")
        parser = argparse.ArgumentParser(progname, conflict_handler="resolve")
        self.initialize_argparse(parser)
        return parser

    #================
    def parse_command_line(self, progname=None, args=None):
        # often used, but the return value less so
        if len(self) == 0:
            raise RuntimeError("create parser called before Config is populated")
        parser = self.create_parser(progname)
        args = parser.parse_args(args)
        args = self.import_argparse(args)
        return args
