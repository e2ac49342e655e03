"""Redirector - request-time redirect resolution with bulk rule management."""

__version__ = "0.1.0"
