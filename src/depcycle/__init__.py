"""depcycle — circular dependency detection and resolution for component wiring graphs."""

__version__ = "0.1.0"
