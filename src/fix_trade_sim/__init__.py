"""Trader / Broker / Custodian FIX workflow simulator."""

__version__ = "0.1.0"
