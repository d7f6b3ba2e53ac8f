"""Build, parse, print and dispatch Open Sound Control packets."""

__version__ = "0.1.0"

__all__ = ["errors", "types", "outbound", "argument", "received", "printing", "listener"]