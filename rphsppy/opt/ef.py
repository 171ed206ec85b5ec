###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
import logging
import time

import numpy as np
import pyomo.environ as pyo

import rphsppy.utils.sputils as sputils
from rphsppy import global_toc

logger = logging.getLogger("rphsppy.opt.ef")


class ExtensiveForm:
    """ Create and solve an extensive form.

    Attributes:
        ef (:class:`pyomo.environ.ConcreteModel`):
            Pyomo model of the extensive form; scenario s is the block
            named "scen{s}".
        solver:
            Solver produced by the Pyomo solver factory.
        scenario_vars (list of list of VarData):
            the decision vector of each scenario, in stage order

    Args:
        options (dict or Config):
            Dictionary of options. Must include a `solver_name` key to
            specify which solver to use on the EF; solver_options, tee and
            printlev are optional.
        problem (Problem):
            The problem; every scenario is built with its build_subpb.
        model_name (str, optional):
            Name of the resulting EF model object.
    """
    def __init__(self, options, problem, model_name=None):
        """ Create the EF and associated solver. """
        self.options = dict(solver_options=None, tee=False, printlev=1)
        self.options.update({name: value for name, value in options.items()})
        if self.options.get("solver_name") is None:
            raise ValueError("Missing the following required options: solver_name")
        self.pb = problem
        self.solver = pyo.SolverFactory(self.options["solver_name"])
        self.ef, self.scenario_vars = self._create_EF(model_name)

    def _create_EF(self, model_name):
        """ Scenario blocks, the expected cost objective and the
        nonanticipativity constraints.

        Notes:
            For each stage and each class of the tree, every scenario of
            the class is tied to the first scenario of the class on the
            coordinates of that stage.
        """
        pb = self.pb
        n = pb.get_scenariodim()
        EF_instance = pyo.ConcreteModel(name=model_name)
        scenario_vars = list()
        obj_expr = 0.0
        for id_scen in range(pb.nscenarios):
            scenario_instance = pyo.ConcreteModel(name=f"scen{id_scen}")
            y, objexpr, _ = pb.build_subpb(scenario_instance, pb.scenarios[id_scen], id_scen)
            vardatas = sputils.build_vardatalist(scenario_instance, y)
            if len(vardatas) != n:
                raise ValueError(f"build_subpb returned {len(vardatas)} variables "
                                 f"for scenario {id_scen}, expected {n}")
            EF_instance.add_component(f"scen{id_scen}", scenario_instance)
            scenario_vars.append(vardatas)
            obj_expr = obj_expr + float(pb.probas[id_scen]) * objexpr
        EF_instance.EF_Obj = pyo.Objective(expr=obj_expr, sense=pyo.minimize)

        nonant_constr = pyo.Constraint(pyo.Any, name='_C_EF_')
        EF_instance.add_component('_C_EF_', nonant_constr)
        tree = pb.scenario_tree
        for t, dims in enumerate(pb.stage_to_dim):
            for node in tree.nodes[t]:
                ref = node.scen_ids[0]
                for id_scen in node.scen_ids[1:]:
                    for i in dims:
                        expr = scenario_vars[id_scen][i] - scenario_vars[ref][i]
                        nonant_constr[(node.name, i, int(id_scen))] = (expr, 0.0)
        return EF_instance, scenario_vars

    def solve_extensive_form(self, solver_options=None, tee=None):
        """ Solve the extensive form.

            Args:
                solver_options (dict or str, optional):
                    Solver-specific options; defaults to the solver_options
                    option.
                tee (bool, optional):
                    If True, displays solver output. Defaults to the tee
                    option.

            Returns:
                :class:`pyomo.opt.results.results_.SolverResults`:
                    Result returned by the Pyomo solve method.
        """
        if solver_options is None:
            solver_options = self.options["solver_options"]
        solver_options = sputils.solver_options_to_dict(solver_options)
        if tee is None:
            tee = self.options["tee"]
        if sputils.is_persistent(self.solver):
            self.solver.set_instance(self.ef)
        # Pass solver-specifiec (e.g. Gurobi, CPLEX) options
        if solver_options is not None:
            for (opt, value) in solver_options.items():
                self.solver.options[opt] = value
        results = self.solver.solve(self.ef, tee=tee, load_solutions=False)
        if len(results.solution) > 0 or sputils.is_persistent(self.solver):
            if sputils.is_persistent(self.solver):
                self.solver.load_vars()
            else:
                self.ef.solutions.load_from(results)
        else:
            logger.warning(f"Extensive form solve returned no solution: "
                           f"termination={results.solver.termination_condition}")
        return results

    def get_objective_value(self):
        """ Retrieve the objective value.

        Returns:
            float:
                Objective value.

        Raises:
            ValueError:
                If optimal objective value could not be retrieved.
        """
        try:
            obj_val = pyo.value(self.ef.EF_Obj)
        except Exception as e:
            raise ValueError(f"Could not extract EF objective value with error: {str(e)}")
        return obj_val

    def get_solution(self):
        """ The (nscenarios, n) table of the scenario decision vectors"""
        x = np.empty((self.pb.nscenarios, self.pb.get_scenariodim()))
        for id_scen, vardatas in enumerate(self.scenario_vars):
            x[id_scen], complete = sputils.vardata_values(vardatas, fallback=np.zeros(len(vardatas)))
            if not complete:
                logger.warning(f"Some variables of scenario {id_scen} have no value")
        return x

    def ef_main(self):
        """ Solve the EF and return the solution table"""
        printlev = self.options["printlev"]
        start = time.time()
        self.pb.display_algopb_stats("Direct solve", printlev)
        global_toc("Solving the extensive form", printlev > 1)
        self.solve_extensive_form()
        x = self.get_solution()
        if printlev > 0:
            print("Objective value: ", self.get_objective_value())
            print("Total time (s): ", time.time() - start)
        return x


def solve_direct(pb, solver_name=None, solver_options=None, printlev=1, tee=False):
    """ Solve the extensive form of pb in one go.

    Returns:
        np.ndarray: the (nscenarios, n) solution
    """
    options = dict(solver_name=solver_name, solver_options=solver_options,
                   printlev=printlev, tee=tee)
    return ExtensiveForm(options, pb, model_name="EF").ef_main()
