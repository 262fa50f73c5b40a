"""Saloon booking core: booking lifecycle and account bootstrap."""

__version__ = "0.1.0"
