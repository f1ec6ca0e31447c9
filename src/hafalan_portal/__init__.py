"""Hafalan Portal: teacher portal for memorization assessments."""

__version__ = "0.1.0"
