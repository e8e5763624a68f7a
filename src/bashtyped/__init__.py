"""bashtyped: opt-in type annotations for shell scripts."""

__version__ = "0.1.0"
