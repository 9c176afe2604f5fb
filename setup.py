#!/usr/bin/env python

from setuptools import setup, find_packages


setup(
    name="esfold",
    version="0.1.0",
    description="Constant folding for ECMAScript-like expression trees",
    long_description=open("README.rst").read(),
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typing_extensions",
        ],
    extras_require={
        "tests": [
            "pytest",
            ],
        },
    platforms=["any"],
    keywords="AST constant folding partial evaluation",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Operating System :: OS Independent",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Software Development :: Code Generators",
    ],
)
