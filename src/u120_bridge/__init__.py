"""U120 Smart instrument bridge."""

__version__ = "0.1.0"
