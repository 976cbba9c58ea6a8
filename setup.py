#!/usr/bin/env python

from setuptools import setup

setup(
    name="tidalstrip",
    version="1.0",
    description="King (1962) tidal radii of satellite halos in merger trees",
    author="Jay Baptista",
    author_email="jaymarie@stanford.edu",
    packages=["tidalstrip"],
    install_requires=[
        "numpy",
        "scipy",
        "asdf",
        "astropy",
        "colossus",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
