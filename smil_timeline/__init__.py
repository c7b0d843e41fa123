"""SMIL animation timeline engine."""

__version__ = "0.1.0"
