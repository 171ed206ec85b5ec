###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
from pyomo.common.timing import TicTocTimer as _TTT
from pyomo.common.dependencies import numpy_available as _np_avail

# Register numpy types in Pyomo, see https://github.com/Pyomo/pyomo/issues/3091
bool(_np_avail)
tt_timer = _TTT()


def global_toc(msg, cond=True):
    return tt_timer.toc(msg, delta=False) if cond else None
