"""Turn-based card arena battles with gem skills and replayable battle records."""

__version__ = "0.1.0"
