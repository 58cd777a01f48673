"""Image intake pipeline: validate, orient and optimize user-submitted images."""

__version__ = "0.1.0"
