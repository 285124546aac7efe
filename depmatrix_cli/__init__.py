"""
DepMatrix CLI - serve the API, inspect matrix files and seed demo data
"""

__version__ = "1.0.0"
