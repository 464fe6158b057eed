"""Client-side state core for the user administration screen."""

__version__ = "0.1.0"
