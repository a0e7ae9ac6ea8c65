"""Bybit perpetual futures leverage calculator."""

__version__ = "1.0.0"
