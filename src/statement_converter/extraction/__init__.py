"""PDF text extraction strategies and pipeline."""

from statement_converter.extraction.cmap import CMap, find_cmaps, merge_cmaps, parse_cmap
from statement_converter.extraction.external import ToolAvailability, get_tool_availability
from statement_converter.extraction.pipeline import ExtractionPipeline
from statement_converter.extraction.readability import is_readable, text_quality

__all__ = [
    "CMap",
    "ExtractionPipeline",
    "ToolAvailability",
    "find_cmaps",
    "get_tool_availability",
    "is_readable",
    "merge_cmaps",
    "parse_cmap",
    "text_quality",
]
