"""Automated video-to-article news pipeline."""

__version__ = "0.3.0"
