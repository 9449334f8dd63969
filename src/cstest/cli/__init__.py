#
# src/cstest/cli/__init__.py
#
"""
Command line interface for cstest.
"""
