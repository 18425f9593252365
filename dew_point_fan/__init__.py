"""Dew point controlled ventilation fan for the Raspberry Pi."""

__version__ = "1.0.0"
