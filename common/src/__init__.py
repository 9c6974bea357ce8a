"""Shared sprite animation types used by the pipeline and its tooling."""

__version__ = "1.0"
