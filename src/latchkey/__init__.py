"""Latchkey: email and password authentication with emailed verification and reset links."""

__version__ = "0.1.0"
