"""Blinky: assignment sync backend and guilt-trip reminder bot."""

__version__ = "0.1.0"
