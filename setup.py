# setup.py
from setuptools import setup, find_packages

setup(
    name="schema-guard",              # the *distribution* name on PyPI
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["pandas"],      # only runtime dependency
    python_requires=">=3.9",
    description="Schema-driven validation and normalisation of nested data",
    author="Your Name",
    license="Creative Commons Attribution-NonCommercial-ShareAlike 4.0 International License",
)
