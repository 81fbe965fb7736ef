"""
Test support utilities for sqlchain tests.

Helpers that are not fixtures but are shared across test modules.
"""
