"""Spark Connect client core: connection strings, plans, column expressions, retries and errors."""

__version__ = "0.1.0"