"""
Shared helpers: expiring cache and message formatting
"""
