"""Gameplanner - football game plan builder and play-allocation engine."""

__version__ = "0.1.0"
