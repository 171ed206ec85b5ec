###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
# Base and utility functions for rphsppy

import os
import sys
import numpy as np
import pyomo.environ as pyo
from pyomo.solvers.plugins.solvers.persistent_solver import PersistentSolver

from rphsppy import tt_timer


def build_vardatalist(model, varlist=None):
    """ Convert a Var, a list of Vars or VarDatas (or a mix) to a flat list
    of VarDatas, keeping the index order of each indexed Var.

    Args:
        model (ConcreteModel): the model the vars live on (used in messages)
        varlist (Var, VarData or list of them): what to flatten

    Returns:
        list of VarData
    """
    if varlist is None:
        raise RuntimeError(f"varlist is None in build_vardatalist for {model.name}")
    if isinstance(varlist, pyo.Var) or not isinstance(varlist, (list, tuple)):
        varlist = [varlist]
    vardatalist = list()
    for v in varlist:
        if v.is_indexed():
            vardatalist.extend(v.values())
        else:
            vardatalist.append(v)
    return vardatalist


def disable_tictoc_output():
    f = open(os.devnull, "w")
    tt_timer._ostream = f


def reenable_tictoc_output():
    # Primarily to re-enable after a disable
    tt_timer._ostream.close()
    tt_timer._ostream = sys.stdout


def is_persistent(solver):
    return isinstance(solver, PersistentSolver)


def vardata_values(vardatas, fallback=None):
    """ Current values of the vardatas as a numpy vector.

    Args:
        vardatas (list of VarData): the variables
        fallback (array or None): used for entries that have no value

    Returns:
        (np.ndarray, bool): the values and True iff every var had a value
    """
    values = np.fromiter((np.nan if v.value is None else v.value
                          for v in vardatas),
                         dtype='d', count=len(vardatas))
    missing = np.isnan(values)
    if missing.any() and fallback is not None:
        values[missing] = np.asarray(fallback, dtype='d')[missing]
    return values, not missing.any()


def option_string_to_dict(ostr):
    """ Convert a string to the standard dict for solver options.
    Used for solver options given on the command line.

    Args:
        ostr (string): space seperated options with = for arguments

    Returns:
        solver_options (dict): solver options

    """
    def convert_value_string_to_number(s):
        try:
            return int(s)
        except ValueError:
            try:
                return float(s)
            except ValueError:
                return s

    solver_options = dict()
    if ostr is None or ostr == "":
        return None
    for this_option_string in ostr.split():
        this_option_pieces = this_option_string.strip().split("=")
        if len(this_option_pieces) == 2:
            option_key = this_option_pieces[0]
            option_value = convert_value_string_to_number(this_option_pieces[1])
            solver_options[option_key] = option_value
        elif len(this_option_pieces) == 1:
            option_key = this_option_pieces[0]
            solver_options[option_key] = None
        else:
            raise RuntimeError("Illegally formed subsolve directive"
                               + " option=%s detected" % this_option_string)
    return solver_options


def solver_options_to_dict(solver_options):
    """ Accept either a dict or an option string (see option_string_to_dict)"""
    if solver_options is None or isinstance(solver_options, dict):
        return solver_options
    if isinstance(solver_options, str):
        return option_string_to_dict(solver_options)
    return dict(solver_options)

