"""Reproducible build-and-package pipeline with a content-addressed artifact cache."""

__version__ = "0.1.0"
