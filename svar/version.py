# svar/version.py
"""
SVAR Toolbox Version Information

Version and package metadata, exposed as ``svar.__version__``.

The toolbox follows semantic versioning (MAJOR.MINOR.PATCH):
- MAJOR: Incompatible API changes
- MINOR: Backwards-compatible functionality additions
- PATCH: Backwards-compatible bug fixes
"""

from typing import Any, Dict, Tuple

# Version components
VERSION_MAJOR = 1
VERSION_MINOR = 0
VERSION_PATCH = 0

# Full version string
__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

# Package metadata
__title__ = "SVAR Toolbox"
__description__ = "Structural identification, impulse responses and variance decompositions for VAR models"
__author__ = "SVAR Toolbox Developers"
__license__ = "MIT"

# Python version requirements
__python_requires__ = ">=3.10"

# Package dependencies
__dependencies__ = {
    "numpy": ">=1.26.0",
    "scipy": ">=1.11.3",
    "pandas": ">=2.1.1",
    "numba": ">=0.58.0",
    "statsmodels": ">=0.14.0",
}


def get_version_components() -> Tuple[int, int, int]:
    """Version components as ``(major, minor, patch)``."""
    return (VERSION_MAJOR, VERSION_MINOR, VERSION_PATCH)


def get_version_info() -> Dict[str, Any]:
    """
    Detailed version information.

    Returns:
        Dict with the version string, its components, Python requirement,
        dependencies and license.
    """
    return {
        "version": __version__,
        "major": VERSION_MAJOR,
        "minor": VERSION_MINOR,
        "patch": VERSION_PATCH,
        "python_requires": __python_requires__,
        "dependencies": dict(__dependencies__),
        "license": __license__,
    }
