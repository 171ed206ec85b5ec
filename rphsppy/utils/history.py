###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
''' Record of a run, filled in by the drivers at each log event.

    Series (one entry per log event unless noted):
      functionalvalue: objective value of the feasible iterate
      time: wall clock since the start of INIT
      computingtime: time spent in iterations so far
      dist_opt: ||approxsol - x|| (only when approxsol has the shape of x)
      primres, dualres: PH residuals
      steplength: ||x - y|| of the last randomized step
      delays: one entry per applied asynchronous update
    logstep is the number of subproblem solves between two log events.
'''
import numpy as np
import pandas as pd

_LOG_SERIES = ("functionalvalue", "time", "computingtime", "dist_opt",
               "primres", "dualres", "steplength")


class History():
    ''' A class to collect the data of one run.

        Args:
            approxsol (array, optional): a (near) optimal table; when given,
                the distance of each logged iterate to it is recorded
    '''
    def __init__(self, approxsol=None):
        self.approxsol = None if approxsol is None else np.asarray(approxsol, dtype='d')
        self.logstep = None
        self._series = {name: list() for name in _LOG_SERIES + ("delays",)}

    def start(self, logstep):
        """ Forget previous data; called by a driver before INIT
        """
        self.logstep = logstep
        for series in self._series.values():
            series.clear()

    def record(self, functionalvalue, computingtime, elapsed, x, **extras):
        """ Add one log event; extras go to the named series (e.g. primres)
        """
        self._series["functionalvalue"].append(functionalvalue)
        self._series["computingtime"].append(computingtime)
        self._series["time"].append(elapsed)
        if self.approxsol is not None and self.approxsol.shape == np.shape(x):
            self._series["dist_opt"].append(float(np.linalg.norm(self.approxsol - x)))
        for name, value in extras.items():
            if name not in self._series:
                raise RuntimeError(f"Unknown history series {name}")
            self._series[name].append(value)

    def record_delay(self, tau):
        self._series["delays"].append(tau)

    def __getitem__(self, key):
        if key == "logstep":
            return self.logstep
        if key == "approxsol":
            return self.approxsol
        return self._series[key]

    def __contains__(self, key):
        if key == "logstep":
            return self.logstep is not None
        if key == "approxsol":
            return self.approxsol is not None
        return key in self._series and len(self._series[key]) > 0

    def keys(self):
        return [k for k in ("logstep", "approxsol") + tuple(self._series) if k in self]

    def to_dataframe(self):
        """ The log series as a DataFrame, one row per log event
        """
        nlogs = len(self._series["functionalvalue"])
        columns = {name: self._series[name] for name in _LOG_SERIES
                   if len(self._series[name]) == nlogs}
        return pd.DataFrame(columns)

    def write_csv(self, fname):
        self.to_dataframe().to_csv(fname, index=False, header=True)

    def __repr__(self):
        return f"History(logstep={self.logstep}, keys={self.keys()})"
