###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Checks on the small helpers of sputils and log.

import logging
import os
import tempfile
import unittest

import numpy as np
import pyomo.environ as pyo

import rphsppy.log
import rphsppy.utils.sputils as sputils


class Test_sputils(unittest.TestCase):
    """ option strings, var lists, values"""

    def test_option_string_to_dict(self):
        self.assertEqual(sputils.option_string_to_dict("mipgap=0.01 threads=2 presolve"),
                         {"mipgap": 0.01, "threads": 2, "presolve": None})
        self.assertIsNone(sputils.option_string_to_dict(""))
        with self.assertRaises(RuntimeError):
            sputils.option_string_to_dict("a=b=c")
        self.assertEqual(sputils.solver_options_to_dict("max_iter=5"), {"max_iter": 5})
        self.assertEqual(sputils.solver_options_to_dict({"tol": 1e-8}), {"tol": 1e-8})

    def test_build_vardatalist(self):
        m = pyo.ConcreteModel()
        m.x = pyo.Var(range(3))
        m.z = pyo.Var()
        self.assertEqual(len(sputils.build_vardatalist(m, m.x)), 3)
        self.assertEqual(len(sputils.build_vardatalist(m, [m.x, m.z])), 4)
        self.assertEqual(len(sputils.build_vardatalist(m, [m.x[2], m.z])), 2)
        with self.assertRaises(RuntimeError):
            sputils.build_vardatalist(m, None)

    def test_vardata_values(self):
        m = pyo.ConcreteModel()
        m.x = pyo.Var(range(3))
        m.x[0].value = 1.0
        m.x[2].value = 3.0
        values, complete = sputils.vardata_values(list(m.x.values()),
                                                  fallback=np.array([9.0, 8.0, 7.0]))
        self.assertFalse(complete)
        np.testing.assert_allclose(values, [1.0, 8.0, 3.0])

    def test_tictoc_output(self):
        sputils.disable_tictoc_output()
        rphsppy.global_toc("this goes nowhere")
        sputils.reenable_tictoc_output()


class Test_log(unittest.TestCase):
    """ setup_logger sends a module's messages to a file"""

    def test_setup_logger(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, "test.log")
            logger = rphsppy.log.setup_logger("rphsppy.tests.logfile", fname,
                                              level=logging.INFO)
            logger.info("hello")
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()
            with open(fname) as f:
                self.assertIn("hello", f.read())


if __name__ == '__main__':
    unittest.main()
