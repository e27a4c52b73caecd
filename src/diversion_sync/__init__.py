"""Diversion repository synchronization for build controllers."""

__version__ = "0.1.0"
