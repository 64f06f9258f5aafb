#!/usr/bin/env python3
"""
Setup script for automodel
"""
import sys
from pathlib import Path
from setuptools import setup, find_packages

HERE = Path(__file__).parent

if sys.version_info < (3, 9):
    sys.exit("❌ Python 3.9 or higher is required")

def read_requirements(filename: str = "requirements.txt"):
    """Read install requirements, skipping comments and blank lines"""
    lines = (HERE / filename).read_text().splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]

setup(
    name="automodel",
    version="0.1.0",
    description="Automatic model selection, normalization and k-fold cross-validation for tabular data",
    python_requires=">=3.9",
    packages=find_packages(include=["automodel", "automodel.*"]),
    py_modules=["main"],
    install_requires=read_requirements(),
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "automodel=main:main",
        ],
    },
)
