"""Version information for the triangle route scanner."""

__version__ = "0.1.0"
