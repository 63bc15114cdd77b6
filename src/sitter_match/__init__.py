"""SitterMatch: multi-signal pet sitter recommendation engine."""

__version__ = "0.1.0"
