"""
Tracker test suite.
"""
