###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Checks on the stage-wise partitions of the scenario tree.

import unittest

from rphsppy.scenario_tree import ScenarioTree


class Test_scenario_tree(unittest.TestCase):
    """ Construction and queries of ScenarioTree"""

    def test_simple_tree(self):
        tree = ScenarioTree([[[0, 1, 2]], [[0], [1, 2]], [[0], [1], [2]]])
        self.assertEqual(tree.nstages, 3)
        self.assertEqual(tree.nscenarios, 3)
        self.assertEqual(tree.all_nodenames,
                         ["ROOT", "ROOT_0", "ROOT_1", "ROOT_0_0", "ROOT_1_0", "ROOT_1_1"])
        self.assertEqual(tree.class_index(1, 2), 1)
        self.assertTrue(tree.are_equivalent(1, 1, 2))
        self.assertFalse(tree.are_equivalent(2, 1, 2))
        self.assertEqual([nd.name for nd in tree.scenario_nodes(2)],
                         ["ROOT", "ROOT_1", "ROOT_1_1"])
        self.assertEqual(tree.node_of(2, 1).parent_name, "ROOT_1")

    def test_branching_factors(self):
        tree = ScenarioTree.from_branching_factors([2, 3])
        self.assertEqual(tree.nscenarios, 6)
        self.assertEqual([c.tolist() for c in tree.classes(1)],
                         [[0, 1, 2], [3, 4, 5]])
        self.assertEqual(tree.all_nodenames,
                         ["ROOT", "ROOT_0", "ROOT_1",
                          "ROOT_0_0", "ROOT_0_1", "ROOT_0_2",
                          "ROOT_1_0", "ROOT_1_1", "ROOT_1_2"])
        for node in tree.nodes[2]:
            self.assertTrue(node.name.startswith(node.parent_name + "_"))

    def test_single_stage(self):
        tree = ScenarioTree.from_branching_factors([])
        self.assertEqual(tree.nstages, 1)
        self.assertEqual(tree.nscenarios, 1)

    def test_root_must_be_single_class(self):
        with self.assertRaises(ValueError):
            ScenarioTree([[[0], [1]], [[0], [1]]])

    def test_not_a_partition(self):
        with self.assertRaises(ValueError):
            ScenarioTree([[[0, 1, 2]], [[0], [1]]])
        with self.assertRaises(ValueError):
            ScenarioTree([[[0, 1, 2]], [[0, 1], [1, 2]]])

    def test_not_a_refinement(self):
        with self.assertRaises(ValueError):
            ScenarioTree([[[0, 1, 2, 3]], [[0, 1], [2, 3]], [[0, 2], [1], [3]]])

    def test_bad_branching_factors(self):
        with self.assertRaises(ValueError):
            ScenarioTree.from_branching_factors([2, 0])


if __name__ == '__main__':
    unittest.main()
