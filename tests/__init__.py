"""
SVAR Toolbox Test Suite

This package contains tests for the SVAR Toolbox: the reduced-form bundle,
Wold multipliers, the four identification schemes, impulse responses,
variance decompositions and the configuration layer.
"""

import os

# Version information for the test package
__version__ = "1.0.0"

# Test configuration based on environment
USE_NUMBA = os.environ.get("SVAR_CORE_ENABLE_NUMBA", "true").lower() == "true"
