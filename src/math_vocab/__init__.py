"""Chinese mathematics terminology recognition and suggestion ranking."""

__version__ = "0.1.0"
