"""External command-line tools used as extraction collaborators.

Poppler's ``pdftotext`` recovers text from some PDFs that none of the
in-process strategies can decode. Tool availability is probed once per
process and passed into the pipeline.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from functools import lru_cache

from statement_converter.config import get_settings
from statement_converter.core.exceptions import ExternalToolUnavailable

logger = logging.getLogger(__name__)

PAGES_PATTERN = re.compile(r"^Pages:\s+(\d+)", re.MULTILINE)


@dataclass(frozen=True)
class ToolAvailability:
    """Which external binaries are installed on this host."""

    pdftotext: bool = False
    pdfinfo: bool = False
    pdftoppm: bool = False
    tesseract: bool = False

    @property
    def ocr(self) -> bool:
        return self.pdftoppm and self.tesseract

    def as_dict(self) -> dict[str, bool]:
        return {
            "pdftotext": self.pdftotext,
            "pdfinfo": self.pdfinfo,
            "pdftoppm": self.pdftoppm,
            "tesseract": self.tesseract,
        }


@lru_cache
def probe_tools(
    pdftotext: str = "pdftotext",
    pdfinfo: str = "pdfinfo",
    pdftoppm: str = "pdftoppm",
    tesseract: str = "tesseract",
) -> ToolAvailability:
    """Check the PATH for each binary. Cached for the process lifetime."""
    tools = ToolAvailability(
        pdftotext=shutil.which(pdftotext) is not None,
        pdfinfo=shutil.which(pdfinfo) is not None,
        pdftoppm=shutil.which(pdftoppm) is not None,
        tesseract=shutil.which(tesseract) is not None,
    )
    logger.info("External tools available: %s", tools.as_dict())
    return tools


def get_tool_availability() -> ToolAvailability:
    """Probe the binaries named in the settings."""
    settings = get_settings()
    return probe_tools(
        settings.pdftotext_binary,
        settings.pdfinfo_binary,
        settings.pdftoppm_binary,
        settings.tesseract_binary,
    )


def _run(args: list[str], timeout: int) -> str:
    result = subprocess.run(
        args,
        capture_output=True,
        timeout=timeout,
        check=True,
    )
    return result.stdout.decode("utf-8", errors="replace")


def get_page_count(path: str, *, tools: ToolAvailability, timeout: int | None = None) -> int:
    """Read the page count from ``pdfinfo``. Defaults to 1 when unknown."""
    if not tools.pdfinfo:
        return 1
    settings = get_settings()
    try:
        output = _run(
            [settings.pdfinfo_binary, path],
            timeout or settings.external_tool_timeout_seconds,
        )
    except (subprocess.SubprocessError, OSError) as e:
        logger.debug("pdfinfo failed: %s", e)
        return 1
    match = PAGES_PATTERN.search(output)
    return int(match.group(1)) if match else 1


def extract_with_pdftotext(
    path: str,
    *,
    tools: ToolAvailability,
    timeout: int | None = None,
) -> list[str]:
    """Extract text page by page with ``pdftotext -layout``.

    Pages that fail are skipped. When no page yields text, the whole
    document is converted in a single run.

    Raises:
        ExternalToolUnavailable: If pdftotext is not installed
    """
    if not tools.pdftotext:
        raise ExternalToolUnavailable(
            details={"tool": "pdftotext"}, message="pdftotext is not installed"
        )

    settings = get_settings()
    timeout = timeout or settings.external_tool_timeout_seconds
    binary = settings.pdftotext_binary

    pages: list[str] = []
    page_count = get_page_count(path, tools=tools, timeout=timeout)
    for number in range(1, page_count + 1):
        try:
            text = _run(
                [binary, "-layout", "-f", str(number), "-l", str(number), path, "-"],
                timeout,
            )
        except (subprocess.SubprocessError, OSError) as e:
            logger.debug("pdftotext failed on page %d: %s", number, e)
            continue
        if text.strip():
            pages.append(text)

    if pages:
        return pages

    text = _run([binary, "-layout", path, "-"], timeout)
    return [text] if text.strip() else []
