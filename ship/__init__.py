"""ship - interactive multi-platform release tool."""

__version__ = "0.3.0"
