"""
Finance Tracker - Source Package

The authentication, data-isolation and analytics core of a personal
finance tracking web application.

DESIGN PRINCIPLES:
1. Every read and write is scoped to the authenticated account
2. Money is summed with Decimal, never float
3. Expected failures return sentinels; only the edge maps them to errors
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
