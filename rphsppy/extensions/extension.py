###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
''' A template for creating extensions (observers) of the drivers.
    NOTE: we pass in the driver object, so extensions can look at (and
    wreck) everything if they want to!

    In the parallel and asynchronous drivers the hooks are called by the
    coordinator: pre_solve when a task is dispatched and post_solve when
    its result is applied, so they never run concurrently.

    NOTE: The return values of all non-constructor methods are ignored
'''

class Extension:
    """ Abstract base class for extensions to rphsppy drivers.
    """
    def __init__(self, opt):
        self.opt = opt

    def pre_iter0(self):
        ''' Method called before INIT; the driver is fully constructed
            but no subproblem has been solved.
        '''
        pass

    def post_iter0(self):
        ''' Method called after INIT, once every scenario has been solved
            and the first feasible point has been projected.
        '''
        pass

    def pre_solve(self, id_scen):
        '''
        Method called before every subproblem solve (or dispatch)

        Inputs
        ------
        id_scen : int, the scenario about to be solved
        '''
        pass

    def post_solve(self, id_scen, y):
        '''
        Method called after every subproblem solve, before the iterate
        is updated with y

        Inputs
        ------
        id_scen : int, the scenario that was solved
        y : np.ndarray, the subproblem solution
        '''
        pass

    def enditer(self):
        ''' Method called at the end of every iteration (for PH, every
            outer iteration; for the randomized drivers, every update).
        '''
        pass

    def on_log(self, x):
        ''' Method called at every log event with the current feasible
            (projected) iterate x.
        '''
        pass

    def post_loops(self, x):
        ''' Method called after the termination of the algorithm with the
            returned iterate x.
        '''
        pass


class MultiExtension(Extension):
    """ Container for all the extension classes we are using.
    """
    def __init__(self, opt, ext_classes):
        super().__init__(opt)
        self.extdict = dict()

        # Construct multiple extension objects
        for constr in ext_classes:
            name = constr.__name__
            self.extdict[name] = constr(opt)

    def pre_iter0(self):
        for lobject in self.extdict.values():
            lobject.pre_iter0()

    def post_iter0(self):
        for lobject in self.extdict.values():
            lobject.post_iter0()

    def pre_solve(self, id_scen):
        for lobject in self.extdict.values():
            lobject.pre_solve(id_scen)

    def post_solve(self, id_scen, y):
        for lobject in self.extdict.values():
            lobject.post_solve(id_scen, y)

    def enditer(self):
        for lobject in self.extdict.values():
            lobject.enditer()

    def on_log(self, x):
        for lobject in self.extdict.values():
            lobject.on_log(x)

    def post_loops(self, x):
        for lobject in self.extdict.values():
            lobject.post_loops(x)
