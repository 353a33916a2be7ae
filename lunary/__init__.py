"""Lunary - desktop full-text search shell"""

__version__ = "0.1.0"
