"""Periodic checks of web pages: console/network errors, redirects and element probes."""

__version__ = "0.1.0"
