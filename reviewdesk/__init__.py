"""
reviewdesk - cached data access for the Judge.me Reviews API.
"""

__version__ = "0.1.0"
