"""Catpoint - home security alarm state engine"""

__version__ = "1.0.0"
