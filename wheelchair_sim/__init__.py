"""Discrete-time wheelchair fleet simulation on a 2D grid."""

__version__ = "0.1.0"
