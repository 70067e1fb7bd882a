"""Mark and sweep garbage collector for container image registry storage."""

__version__ = "1.0.0"
