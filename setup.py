# File: aspupath/setup.py
# Location: aspupath/setup.py
"""
Setup script for aspupath.

This file configures how the package is built, installed, and what
dependencies are required.
"""

import os

from setuptools import find_packages, setup

# Load version from version.py without importing the module
version = {}
with open(os.path.join("aspupath", "version.py")) as f:
    exec(f.read(), version)

# Read the README for the long description
this_dir = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_dir, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="aspupath",
    version=version["__version__"],
    description="Single-gene based pathway SPU and adaptive SPU association tests.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "statsmodels",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["aspupath=aspupath.cli:main"]},
    include_package_data=True,
    package_data={"aspupath": ["config.json"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],
)
