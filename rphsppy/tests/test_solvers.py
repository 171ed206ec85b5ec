###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Runs that need a Pyomo solver for quadratic objectives.

import pickle
import unittest

import numpy as np

from rphsppy.opt.ef import ExtensiveForm, solve_direct
from rphsppy.opt.ph import solve_progressivehedging
from rphsppy.opt.randasync import solve_randomized_async
from rphsppy.opt.randpar import solve_randomized_par
from rphsppy.opt.randsync import solve_randomized_sync
from rphsppy.projection import project
from rphsppy.subproblem import PyomoSubproblemSolver
import rphsppy.tests.examples.hydrothermal as hydrothermal
from rphsppy.tests.examples.hydrothermal import build_hydrothermal_problem
from rphsppy.tests.examples.simple import (OPTVAL, XSOL, SimpleProxSolver,
                                           build_simpleexample)
from rphsppy.tests.utils import get_solver

__version__ = 0.3

solver_available, solver_name, persistent_available, persistent_solver_name = get_solver()


@unittest.skipIf(not solver_available, "no solver is available")
class Test_direct(unittest.TestCase):
    """ Extensive form solves"""

    def test_simple(self):
        pb = build_simpleexample()
        x = solve_direct(pb, solver_name=solver_name, printlev=0)
        np.testing.assert_allclose(x, XSOL, atol=1e-4)
        self.assertAlmostEqual(pb.objective_value(x), OPTVAL, places=4)

    def test_ef_object(self):
        pb = build_hydrothermal_problem()
        ef = ExtensiveForm({"solver_name": solver_name, "printlev": 0}, pb)
        self.assertEqual(len(ef.scenario_vars), pb.nscenarios)
        ef.solve_extensive_form()
        x = ef.get_solution()
        np.testing.assert_allclose(project(pb, x), x, atol=1e-5)
        self.assertAlmostEqual(ef.get_objective_value(), pb.objective_value(x), places=4)

    def test_missing_solver_name(self):
        with self.assertRaises(ValueError):
            ExtensiveForm({}, build_simpleexample())


@unittest.skipIf(not solver_available, "no solver is available")
class Test_subproblem(unittest.TestCase):
    """ PyomoSubproblemSolver against the closed form"""

    def setUp(self):
        self.pb = build_simpleexample()

    def test_against_closed_form(self):
        solver = PyomoSubproblemSolver(solver_name)
        exact = SimpleProxSolver()
        rng = np.random.default_rng(3)
        for id_scen in range(self.pb.nscenarios):
            target = rng.uniform(-2, 5, size=3)
            dual = rng.uniform(-1, 1, size=3)
            np.testing.assert_allclose(
                solver.solve(self.pb, id_scen, target, 3.0, dual),
                exact.solve(self.pb, id_scen, target, 3.0, dual), atol=1e-4)
            np.testing.assert_allclose(
                solver.solve(self.pb, id_scen, target, 0.5),
                exact.solve(self.pb, id_scen, target, 0.5), atol=1e-4)

    def test_pickle(self):
        solver = PyomoSubproblemSolver(solver_name, solver_options="", tee=False)
        solver.solve(self.pb, 0, np.zeros(3), 3.0)
        self.assertIsNotNone(solver._solver_plugin)
        copied = pickle.loads(pickle.dumps(solver))
        self.assertIsNone(copied._solver_plugin)
        self.assertEqual(copied.solver_name, solver_name)

    def test_no_solver_name(self):
        with self.assertRaises(ValueError):
            PyomoSubproblemSolver(None)


@unittest.skipIf(not solver_available, "no solver is available")
class Test_simple_with_solver(unittest.TestCase):
    """ The drivers with Pyomo subproblem solves"""

    def setUp(self):
        self.pb = build_simpleexample()

    def test_ph(self):
        x = solve_progressivehedging(self.pb, eps_primal=1e-6, eps_dual=1e-6,
                                     printlev=0, solver_name=solver_name)
        np.testing.assert_allclose(x, XSOL, atol=1e-3)

    def test_randsync(self):
        x = solve_randomized_sync(self.pb, maxiter=1000, printlev=0, printstep=100,
                                  solver_name=solver_name)
        np.testing.assert_allclose(x, XSOL, atol=1e-2)

    def test_randasync_processes(self):
        x = solve_randomized_async(self.pb, maxiter=1000, maxtime=120, printlev=0,
                                   printstep=100, nworkers=2,
                                   worker_kind="process", solver_name=solver_name)
        np.testing.assert_allclose(x, XSOL, atol=5e-2)


@unittest.skipIf(not solver_available, "no solver is available")
class Test_hydrothermal(unittest.TestCase):
    """ The drivers on the hydro-thermal problem, against the direct solve"""

    @classmethod
    def setUpClass(cls):
        cls.pb = build_hydrothermal_problem()
        cls.xdirect = solve_direct(cls.pb, solver_name=solver_name, printlev=0)
        cls.optval = cls.pb.objective_value(cls.xdirect)

    def test_direct_value(self):
        self.assertAlmostEqual(self.optval, hydrothermal.OPTVAL, delta=1e-2)

    def test_sizes(self):
        self.assertEqual(self.pb.nscenarios, 16)
        self.assertEqual(self.pb.get_scenariodim(), 15)
        self.assertEqual(len(self.pb.scenario_tree.all_nodenames), 31)

    def test_ph(self):
        x = solve_progressivehedging(self.pb, eps_primal=1e-5, eps_dual=1e-5,
                                     maxiter=500, printlev=0, solver_name=solver_name)
        np.testing.assert_allclose(project(self.pb, x), x)
        self.assertAlmostEqual(self.pb.objective_value(x), self.optval, delta=1e-2)

    def test_randsync(self):
        x = solve_randomized_sync(self.pb, maxiter=1500, printlev=0, printstep=500,
                                  qdistr="unifdistr", solver_name=solver_name)
        np.testing.assert_allclose(project(self.pb, x), x)
        self.assertAlmostEqual(self.pb.objective_value(x), self.optval,
                               delta=0.05 * abs(self.optval) + 1e-2)

    def test_randpar_processes(self):
        x = solve_randomized_par(self.pb, maxiter=3000, maxtime=120, printlev=0,
                                 printstep=1000, nworkers=2, worker_kind="process",
                                 solver_name=solver_name)
        np.testing.assert_allclose(project(self.pb, x), x)
        self.assertAlmostEqual(self.pb.objective_value(x), self.optval,
                               delta=0.05 * abs(self.optval) + 1e-2)

    def test_randasync_processes(self):
        x = solve_randomized_async(self.pb, maxiter=3000, maxtime=120, printlev=0,
                                   printstep=1000, nworkers=2, worker_kind="process",
                                   solver_name=solver_name)
        np.testing.assert_allclose(project(self.pb, x), x)
        self.assertAlmostEqual(self.pb.objective_value(x), self.optval,
                               delta=0.05 * abs(self.optval) + 1e-2)


if __name__ == '__main__':
    unittest.main()
