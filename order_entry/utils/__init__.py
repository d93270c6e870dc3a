"""
Utilities
=========

Logging, error types and price parsing shared by the whole package.
"""
