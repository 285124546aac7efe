"""
DepMatrix

Triangular dependency matrix management service.
"""

__version__ = "1.0.0"
