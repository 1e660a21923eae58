"""Spoof GPS locations on iOS simulators, iOS devices and Android devices."""

__version__ = "0.1.0"
