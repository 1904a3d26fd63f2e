"""Discord to HTTP receiver relay bot."""

__version__ = "0.1.0"
