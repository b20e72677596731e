"""Interactive cycling and walking route creation."""

__version__ = "0.1.0"
