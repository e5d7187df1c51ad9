"""Bank statement rule registry and normalisation toolkit."""

__version__ = "0.3.0"
