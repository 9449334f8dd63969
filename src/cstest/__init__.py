#
# src/cstest/__init__.py
#
"""
cstest: run ChoiceScript's Quicktest and Randomtest from the command line.
"""
