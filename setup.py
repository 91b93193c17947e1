#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Legacy entry point for the SVAR Toolbox.

All metadata lives in pyproject.toml; this shim only serves tools that still
invoke ``setup.py`` directly.
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup()
