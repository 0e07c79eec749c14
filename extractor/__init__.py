"""Inference API enrichment of media catalog entries."""

__version__ = "0.1.0"
