#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
import re
from setuptools import setup

dir_path = os.path.dirname(os.path.realpath(__file__))

init_string = open(os.path.join(dir_path, 'py', 'ensemblecore',
                                '__init__.py')).read()
VERS = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VERS, init_string, re.M)
__version__ = mo.group(1)

with open(os.path.join(dir_path, 'README.md'), 'r') as f:
    long_description = f.read()

setup(name="ensemblecore",
      version=__version__,
      packages=["ensemblecore"],
      license="MIT",
      description=("Affine-invariant ensemble walk move and constrained "
                   "parameter transforms for Bayesian inference."),
      long_description=long_description,
      long_description_content_type="text/markdown",
      package_dir={'': 'py/'},
      python_requires=">=3.8",
      install_requires=["numpy", "scipy"],
      extras_require={"test": ["pytest"]},
      keywords=[
          "ensemble sampler", "affine invariant", "mcmc", "bayesian",
          "inference", "transforms"
      ],
      classifiers=[
          "License :: OSI Approved :: MIT License",
          "Natural Language :: English", "Programming Language :: Python",
          "Operating System :: OS Independent",
          "Topic :: Scientific/Engineering",
          "Intended Audience :: Science/Research"
      ])
