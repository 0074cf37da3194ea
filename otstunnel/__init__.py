"""Tablestore tunnel consumption: plain-buffer codec, models, configuration and processors."""

__version__ = "1.0.0"