"""Bank statement PDF to CSV converter for UK banks."""

__version__ = "2.0.0"
