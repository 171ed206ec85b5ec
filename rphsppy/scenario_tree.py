###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# scenario_tree.py; stage-wise partition of the scenarios
# ALL INDEXES ARE ZERO-BASED
import logging

import numpy as np

logger = logging.getLogger("rphsppy.scenario_tree")


class ScenarioNode:
    """Store a node in the scenario tree.

    A node is one equivalence class of scenarios at one stage: the
    scenarios in the class share their history (and hence their decisions)
    up to and including that stage.

    Args:
      name (str): name of the node; the stage 0 node is named "ROOT"
      stage (int): stage number (root is 0)
      scen_ids (list of int): the scenarios that go through the node
      parent_name (str): name of the parent node (None for ROOT)
    """
    def __init__(self, name, stage, scen_ids, parent_name=None):
        self.name = name
        self.stage = stage
        self.scen_ids = np.asarray(scen_ids, dtype=int)
        self.parent_name = parent_name # None for ROOT
        self.kids = list()

    def __repr__(self):
        return f"ScenarioNode({self.name}, stage={self.stage}, scenarios={self.scen_ids.tolist()})"


class ScenarioTree:
    """ Stage-wise partition of the scenario ids.

    Args:
        stage_classes (list of list of list of int): for each stage, the
            equivalence classes of scenario ids at that stage.

    Raises:
        ValueError: if the classes of a stage do not partition the scenario
            ids, or if a stage does not refine the previous one.

    Notes:
        Children are named after their parent, so the kids of "ROOT" are
        "ROOT_0", "ROOT_1", ... as in a tree built from branching factors.
    """
    def __init__(self, stage_classes):
        if len(stage_classes) == 0:
            raise ValueError("A scenario tree needs at least one stage")
        self.stage_classes = [[sorted(int(s) for s in c) for c in classes]
                              for classes in stage_classes]
        self.nstages = len(self.stage_classes)
        self.nscenarios = sum(len(c) for c in self.stage_classes[0])

        self._check_partitions()
        self._build_nodes()

    @classmethod
    def from_branching_factors(cls, branching_factors):
        """ Uniform tree; scenario ids are the leaves from left to right.

        Args:
            branching_factors (list of int): number of kids of each node at
                stages 0, 1, ..., nstages-2

        Returns:
            ScenarioTree: with len(branching_factors)+1 stages
        """
        if any(bf < 1 for bf in branching_factors):
            raise ValueError(f"Bad branching factors {branching_factors}")
        nscenarios = int(np.prod(branching_factors)) if len(branching_factors) > 0 else 1
        stage_classes = list()
        for t in range(len(branching_factors)+1):
            width = int(np.prod(branching_factors[t:])) if t < len(branching_factors) else 1
            stage_classes.append([list(range(start, start+width))
                                  for start in range(0, nscenarios, width)])
        return cls(stage_classes)

    def _check_partitions(self):
        all_ids = set(range(self.nscenarios))
        if len(self.stage_classes[0]) != 1:
            raise ValueError("Stage 0 must have exactly one class (the root); "
                             f"found {len(self.stage_classes[0])}")
        for t, classes in enumerate(self.stage_classes):
            seen = set()
            for c in classes:
                if len(c) == 0:
                    raise ValueError(f"Empty equivalence class at stage {t}")
                if seen.intersection(c):
                    raise ValueError(f"Scenarios {sorted(seen.intersection(c))} "
                                     f"appear in more than one class at stage {t}")
                seen.update(c)
            if seen != all_ids:
                raise ValueError(f"Classes at stage {t} do not partition "
                                 f"the scenario ids 0..{self.nscenarios-1}")
            if t == 0:
                continue
            parent_of = self._class_index_array(t-1)
            for c in classes:
                if len(set(parent_of[c])) != 1:
                    raise ValueError(f"Class {c} at stage {t} is not contained "
                                     f"in a single class of stage {t-1}")

    def _class_index_array(self, stage):
        idx = np.empty(self.nscenarios, dtype=int)
        for k, c in enumerate(self.stage_classes[stage]):
            idx[c] = k
        return idx

    def _build_nodes(self):
        # _class_of[t, s] is the index (into stage_classes[t]) of the class of s
        self._class_of = np.vstack([self._class_index_array(t)
                                    for t in range(self.nstages)])
        self.nodes = [[] for _ in range(self.nstages)]
        root = ScenarioNode("ROOT", 0, self.stage_classes[0][0])
        self.nodes[0].append(root)
        for t in range(1, self.nstages):
            for c in self.stage_classes[t]:
                parent = self.nodes[t-1][self._class_of[t-1, c[0]]]
                node = ScenarioNode(f"{parent.name}_{len(parent.kids)}", t, c,
                                    parent_name=parent.name)
                parent.kids.append(node)
                self.nodes[t].append(node)
        self.all_nodenames = [nd.name for stage_nodes in self.nodes
                              for nd in stage_nodes]
        logger.debug(f"Scenario tree with {self.nstages} stages, "
                     f"{self.nscenarios} scenarios and "
                     f"{len(self.all_nodenames)} nodes")

    def classes(self, stage):
        """ The equivalence classes (arrays of scenario ids) at stage"""
        return [nd.scen_ids for nd in self.nodes[stage]]

    def class_index(self, stage, id_scen):
        """ Index into classes(stage) of the class holding id_scen"""
        return int(self._class_of[stage, id_scen])

    def node_of(self, stage, id_scen):
        return self.nodes[stage][self._class_of[stage, id_scen]]

    def scenario_nodes(self, id_scen):
        """ The path from ROOT to the leaf of scenario id_scen"""
        return [self.node_of(t, id_scen) for t in range(self.nstages)]

    def are_equivalent(self, stage, s1, s2):
        return self._class_of[stage, s1] == self._class_of[stage, s2]

    def __repr__(self):
        return (f"ScenarioTree(nstages={self.nstages}, "
                f"nscenarios={self.nscenarios}, "
                f"nnodes={len(self.all_nodenames)})")
