"""Intermediate data structures produced by the extraction pipeline."""

from dataclasses import dataclass, field

from pydantic import BaseModel, Field


@dataclass
class TextFragment:
    """A decoded text run, optionally positioned in PDF user space."""

    text: str
    x: float | None = None
    y: float | None = None


class ExtractionResult(BaseModel):
    """The winning output of the extraction cascade.

    ``pages`` holds one string per page, lines separated by ``\\n`` in
    reading order.
    """

    pages: list[str] = Field(default_factory=list)
    strategy: str = Field(..., description="Strategy that produced the pages")
    score: float = Field(0.0, description="Readability score (0.0-1.0)")
    accepted: bool = Field(
        True, description="False when picked by the best-effort fallback"
    )

    @property
    def text(self) -> str:
        return "\n\n".join(self.pages)


@dataclass
class StrategyAttempt:
    """Bookkeeping for one strategy run, used for the best-effort pick."""

    name: str
    pages: list[str] = field(default_factory=list)
    score: float = 0.0
    error: Exception | None = None

    @property
    def has_text(self) -> bool:
        return any(p.strip() for p in self.pages)
