"""Core infrastructure: configuration, logging, exceptions and metrics."""
