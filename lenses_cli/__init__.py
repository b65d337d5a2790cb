"""Command-line client and SDK for the Lenses management API."""

__version__ = "0.1.0"
