#!/bin/usr/env python3
###############################################################################
# rph-sppy: Randomized Progressive Hedging for Stochastic Programming in PYthon
#
# Copyright (c) 2024, Lawrence Livermore National Security, LLC, Alliance for
# Sustainable Energy, LLC, The Regents of the University of California, et al.
# All rights reserved. Please see the files COPYRIGHT.md and LICENSE.md for
# full copyright and license information.
###############################################################################
import sys

# We raise an error if trying to install with python2
if sys.version[0] == '2':
    print("Error: This package must be installed with python3")
    sys.exit(1)

from setuptools import find_packages, setup
from pathlib import Path

packages = find_packages(include=["rphsppy", "rphsppy.*"])

this_directory = Path(__file__).parent
long_description = (this_directory / "README.rst").read_text()

# intentionally leaving out mpi4py (only the "mpi" worker pool needs it)
setup(
    name='rph-sppy',
    version='0.3.0.dev0',
    description="rph-sppy",
    long_description=long_description,
    long_description_content_type="text/x-rst",
    url='https://github.com/rph-sppy/rph-sppy',
    packages=packages,
    python_requires='>=3.9',
    install_requires=[
        'numpy',
        'pyomo>=6.4',
        'pandas',
    ],
    extras_require={
        'mpi': [
            'mpi4py',
        ],
        'test': [
            'pytest',
            'gurobipy',
        ],
        'doc': [
            'sphinx_rtd_theme',
            'sphinx',
        ]
    },
)
