"""
Installs bayesviz
"""

import re

from setuptools import find_packages, setup


# Get package information
def get_package_info():
    """
    Gets version information for the installation.
    """
    # Set up variables
    package_version = None

    # Open the file containing version info
    with open("bayesviz/__init__.py", "r", encoding="utf-8") as file:
        for line in file:
            # Check version
            if match_obj := re.match(r"__version__.+([0-9]+\.[0-9]+\.[0-9]+)", line):
                package_version = match_obj.group(1)

    # Checks on variables
    if package_version is None:
        raise IOError("Could not find information on version.")

    return package_version


# Run setup
setup(
    name="bayesviz",
    version=get_package_info(),
    description="Plotting helpers for posterior density estimates",
    packages=find_packages(include=["bayesviz", "bayesviz.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.26",
        "pandas>=2.0",
        "scipy>=1.11",
        "arviz>=0.17,<1.0",
        "holoviews>=1.18",
        "hvplot>=0.9",
        "bokeh>=3.1",
        "typeguard>=4.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
        "docs": ["sphinx>=7.0"],
    },
)
