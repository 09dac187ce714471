"""Manual activity timer for bus observation sessions."""

__version__ = "0.1.0"
