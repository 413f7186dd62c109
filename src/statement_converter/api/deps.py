"""FastAPI dependency injection for the conversion service."""

from statement_converter.extraction.external import ToolAvailability, get_tool_availability
from statement_converter.services.converter import StatementConverter


def get_converter() -> StatementConverter:
    """
    Get a statement converter instance.

    Returns:
        StatementConverter using the global parser factory
    """
    return StatementConverter()


def get_tools() -> ToolAvailability:
    """Get the probed external tool availability."""
    return get_tool_availability()
