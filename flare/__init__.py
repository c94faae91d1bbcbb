"""Flare trending aggregation and personalized ranking service."""

__version__ = "0.1.0"
