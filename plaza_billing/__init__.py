"""Billing and collection core for a small commercial plaza."""

__version__ = "0.1.0"
