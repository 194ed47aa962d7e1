"""
Utility helpers for the MediaVault backend.

- logger: JSON/plain formatters, application logging setup, context adapter
"""
