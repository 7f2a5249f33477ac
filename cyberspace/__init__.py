"""Cyberspace: a terminal client for reading the Cyberspace feed."""

__version__ = "0.1.0"
