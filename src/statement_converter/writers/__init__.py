"""Output writers for parsed statements."""

from statement_converter.writers.csv_writer import CSVWriter

__all__ = ["CSVWriter"]
