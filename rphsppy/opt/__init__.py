###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
from rphsppy.opt.ef import ExtensiveForm, solve_direct
from rphsppy.opt.ph import PH, solve_progressivehedging
from rphsppy.opt.randsync import RandomizedSync, solve_randomized_sync
from rphsppy.opt.randpar import RandomizedPar, solve_randomized_par
from rphsppy.opt.randasync import RandomizedAsync, solve_randomized_async
