"""Discord verification sessions bound to Self Protocol proof requests."""

__version__ = "0.1.0"
