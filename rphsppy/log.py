###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
"""
Logging for rphsppy.

Modules log through children of the 'rphsppy' logger:

.. code-block:: python

   import logging
   logger = logging.getLogger('rphsppy.opt.randasync')

The package logger prints the bare message on stdout at INFO level.
Iteration tables are printed directly by the drivers (printlev > 0);
the loggers carry the rest:

* 'rphsppy.subproblem': warnings on bad solver statuses
* 'rphsppy.rphbase': errors for worker tasks that raised
* 'rphsppy.utils.workers', 'rphsppy.opt.*': debug messages on the pool
  and on timed out waits

To send one logger to a file instead, use setup_logger:

.. code-block:: python

   rphsppy.log.setup_logger("rphsppy.opt.randasync", "async.log")

"""
import sys
import logging
log_format = '%(message)s'

# the package logger
logger = logging.getLogger('rphsppy')
logger.setLevel(logging.INFO)

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(logging.Formatter(log_format))
logger.addHandler(console_handler)


def setup_logger(name, out, level=logging.DEBUG, mode='w', fmt=None):
    ''' Give logger name its own handler (a stream or a file) and stop it
        from propagating to the package logger.

        Args:
            name (str): logger name, e.g. 'rphsppy.opt.randpar'
            out (str or stream): sys.stdout, sys.stderr or a file name
            level (int): logging level
            mode (str): file open mode
            fmt (str, optional): format; default "(%(asctime)s) %(message)s"

        Returns:
            logging.Logger
    '''
    if fmt is None:
        fmt = "(%(asctime)s) %(message)s"
    if out in (sys.stdout, sys.stderr):
        handler = logging.StreamHandler(out)
    else:
        handler = logging.FileHandler(out, mode=mode)
    handler.setFormatter(logging.Formatter(fmt))
    named_logger = logging.getLogger(name)
    named_logger.setLevel(level)
    named_logger.propagate = False
    named_logger.addHandler(handler)
    return named_logger
