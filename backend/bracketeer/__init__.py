"""Tournament bracket engine: bracket generation and match progression."""

__version__ = "0.1.0"
