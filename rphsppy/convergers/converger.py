###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
''' Base class for PH convergers.

    The PH driver builds its converger once the loop state exists and asks
    it after INIT and after every outer iteration. Iteration and time
    limits are handled by rphsppy.convergers.budget, not here.
'''

import abc

from rphsppy import global_toc


class Converger(abc.ABC):
    ''' Abstract base class for converger monitors.

        Args:
            opt (PH): the driver; its residuals and options are read, never
                written

        Attributes:
            conv (float): the value compared with the tolerance at the last
                check (None before the first one)
            conv_history (list of float): conv at every check
    '''
    def __init__(self, opt):
        self.opt = opt
        self.conv = None
        self.conv_history = list()

    def record(self, conv):
        self.conv = conv
        self.conv_history.append(conv)

    @abc.abstractmethod
    def is_converged(self):
        ''' True to stop the outer iterations now; no solve is done after a
            True answer.
        '''
        pass

    def post_loops(self):
        ''' Called once the driver has stopped, after the extensions'
            post_loops.
        '''
        if self.conv is not None:
            global_toc(f"{self.__class__.__name__}: last value {self.conv:.3e} "
                       f"after {len(self.conv_history)} checks",
                       self.opt.options["printlev"] > 1)
