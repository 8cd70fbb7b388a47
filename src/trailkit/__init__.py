"""Trailkit: content-block engine for location-based games."""

__version__ = "0.1.0"
