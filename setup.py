"""
Setup script for netshape, the egress traffic-shaping policy engine.

This allows the package to be installed in development mode:
    pip install -e .

Or run directly:
    python -m netshape --list-presets
"""

from setuptools import setup, find_packages

setup(
    name="netshape",
    version="0.1.0",
    description="Egress traffic shaping (rate, delay, jitter, loss) for Linux tc",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
        "dev": [
            "pytest",
            "pytest-mock",
            "black",
            "flake8",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "netshape=netshape.cli:main",
        ],
    },
)
