###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Projection onto the non-anticipatory subspace: for each stage, replace the
# stage coordinates of every scenario in an equivalence class by the
# conditional (probability weighted) average over the class.
import numpy as np


def nonanticipatory_projection(x, pb, y):
    """ Write the projection of y into x.

    Args:
        x (np.ndarray): (nscenarios, n) output; may be the same array as y
        pb (Problem): supplies the tree, the stage dimensions and weights
        y (np.ndarray): (nscenarios, n) table to project

    Returns:
        np.ndarray: x
    """
    for t, dims in enumerate(pb.stage_to_dim):
        for ids, w in pb.class_weights[t]:
            avg = w @ y[ids, dims.start:dims.stop]
            x[ids, dims.start:dims.stop] = avg
    return x


def project(pb, y):
    """ Projection of y into a new array"""
    return nonanticipatory_projection(np.empty_like(y, dtype='d'), pb, y)


def get_averagedtraj(x_scen, pb, z, id_scen):
    """ Fill x_scen with row id_scen of the projection of z.

    Only the classes that hold id_scen are averaged.

    Args:
        x_scen (np.ndarray): length n output vector
        pb (Problem): the problem
        z (np.ndarray): (nscenarios, n) table
        id_scen (int): the scenario

    Returns:
        np.ndarray: x_scen
    """
    tree = pb.scenario_tree
    for t, dims in enumerate(pb.stage_to_dim):
        ids, w = pb.class_weights[t][tree.class_index(t, id_scen)]
        x_scen[dims.start:dims.stop] = w @ z[ids, dims.start:dims.stop]
    return x_scen
