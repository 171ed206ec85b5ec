###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Checks on the History recorder.

import os
import tempfile
import unittest

import numpy as np
import pandas as pd

from rphsppy.utils.history import History


class Test_history(unittest.TestCase):
    """ series, dist_opt and csv output"""

    def test_record(self):
        hist = History(approxsol=np.zeros((2, 2)))
        self.assertNotIn("logstep", hist)
        hist.start(logstep=4)
        hist.record(1.5, 0.1, 0.2, np.ones((2, 2)), primres=0.3, dualres=0.4)
        hist.record(1.0, 0.2, 0.3, np.zeros((2, 2)), primres=0.1, dualres=0.2)
        self.assertEqual(hist["logstep"], 4)
        self.assertEqual(hist["functionalvalue"], [1.5, 1.0])
        np.testing.assert_allclose(hist["dist_opt"], [2.0, 0.0])
        self.assertIn("primres", hist)
        self.assertNotIn("steplength", hist)
        self.assertNotIn("delays", hist)
        self.assertEqual(set(hist.keys()),
                         {"logstep", "approxsol", "functionalvalue", "time",
                          "computingtime", "dist_opt", "primres", "dualres"})
        with self.assertRaises(RuntimeError):
            hist.record(1.0, 0.2, 0.3, np.zeros((2, 2)), residual=1.0)

    def test_shape_mismatch(self):
        hist = History(approxsol=np.zeros(3))
        hist.start(logstep=1)
        hist.record(0.0, 0.0, 0.0, np.zeros((2, 2)))
        self.assertNotIn("dist_opt", hist)

    def test_start_clears(self):
        hist = History()
        hist.start(logstep=1)
        hist.record(0.0, 0.0, 0.0, np.zeros((1, 1)), steplength=1.0)
        hist.record_delay(2)
        hist.start(logstep=5)
        self.assertNotIn("functionalvalue", hist)
        self.assertNotIn("delays", hist)
        self.assertEqual(hist["logstep"], 5)

    def test_write_csv(self):
        hist = History()
        hist.start(logstep=1)
        for k in range(3):
            hist.record(float(k), 0.1 * k, 0.2 * k, np.zeros((1, 1)), steplength=1.0 / (k+1))
        with tempfile.TemporaryDirectory() as tmpdir:
            fname = os.path.join(tmpdir, "hist.csv")
            hist.write_csv(fname)
            df = pd.read_csv(fname)
        self.assertEqual(len(df), 3)
        self.assertEqual(list(df["functionalvalue"]), [0.0, 1.0, 2.0])
        self.assertIn("steplength", df.columns)
        self.assertNotIn("primres", df.columns)


if __name__ == '__main__':
    unittest.main()
