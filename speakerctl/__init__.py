"""Sonos Night Sound / Speech Enhancement control with filtered discovery."""

__version__ = "0.1.0"
