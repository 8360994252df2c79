"""
Utilities Package.

Shared helpers for logging and console output.
"""
