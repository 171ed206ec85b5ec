###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Checks on the projection onto the non-anticipatory subspace.

import unittest

import numpy as np

from rphsppy.projection import get_averagedtraj, nonanticipatory_projection, project
from rphsppy.tests.examples.hydrothermal import build_hydrothermal_problem
from rphsppy.tests.examples.simple import XSOL, build_simpleexample


def _is_nonanticipative(pb, x):
    for t, dims in enumerate(pb.stage_to_dim):
        for ids in pb.scenario_tree.classes(t):
            block = x[ids, dims.start:dims.stop]
            if not np.allclose(block, block[0]):
                return False
    return True


class Test_projection(unittest.TestCase):
    """ Projection on the simple and hydro-thermal problems"""

    def setUp(self):
        self.pb = build_simpleexample()
        self.rng = np.random.default_rng(42)

    def test_simple_values(self):
        y = np.array([[1.0, 1.0, 1.0],
                      [2.0, 2.0, 2.0],
                      [3.0, 3.0, 3.0]])
        x = project(self.pb, y)
        np.testing.assert_allclose(x, XSOL)

    def test_idempotent_and_feasible(self):
        for pb in (self.pb, build_hydrothermal_problem()):
            y = self.rng.normal(size=(pb.nscenarios, pb.get_scenariodim()))
            x = project(pb, y)
            self.assertTrue(_is_nonanticipative(pb, x))
            np.testing.assert_allclose(project(pb, x), x)

    def test_aliasing(self):
        y = self.rng.normal(size=(3, 3))
        expected = project(self.pb, y)
        out = nonanticipatory_projection(y, self.pb, y)
        self.assertIs(out, y)
        np.testing.assert_allclose(y, expected)

    def test_linear(self):
        a = self.rng.normal(size=(3, 3))
        b = self.rng.normal(size=(3, 3))
        np.testing.assert_allclose(project(self.pb, 2 * a - b),
                                   2 * project(self.pb, a) - project(self.pb, b))

    def test_averaged_trajectory(self):
        pb = build_hydrothermal_problem()
        z = self.rng.normal(size=(pb.nscenarios, pb.get_scenariodim()))
        x = project(pb, z)
        x_scen = np.empty(pb.get_scenariodim())
        for id_scen in range(pb.nscenarios):
            get_averagedtraj(x_scen, pb, z, id_scen)
            np.testing.assert_allclose(x_scen, x[id_scen])


if __name__ == '__main__':
    unittest.main()
