"""
Test support utilities for order-spine tests.

Fakes and builders that don't fit as pytest fixtures but are useful
across multiple test files.
"""
