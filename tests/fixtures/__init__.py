"""Canned provider data and fake adapters shared by the test suite."""
