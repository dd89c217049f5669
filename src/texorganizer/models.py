"""Pydantic models for the LaTeX build-and-organize tool."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ArtifactKind(str, Enum):
    FIGURE = "figure"
    AUXILIARY_BYPRODUCT = "auxiliary_byproduct"
    COMPILED_OUTPUT = "compiled_output"
    IGNORE = "ignore"
    UNCLASSIFIED = "unclassified"


class ToolKind(str, Enum):
    COMPILER = "compiler"
    BIBLIOGRAPHY = "bibliography"


class ControllerState(str, Enum):
    IDLE = "idle"
    FIGURES_MOVED = "figures_moved"
    COMPILED = "compiled"
    BIB_CYCLE = "bib_cycle"
    RERUN_COMPILED = "rerun_compiled"
    PROBLEMS_EXTRACTED = "problems_extracted"
    ARTIFACTS_MOVED = "artifacts_moved"
    DONE = "done"


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

CITATION_MARKER = "cite"


class Document(BaseModel):
    """A single LaTeX source file and the names derived from it."""
    source_path: Path = Field(..., description="Path to the .tex source file")

    @property
    def base_name(self) -> str:
        return self.source_path.stem

    @property
    def directory(self) -> Path:
        return self.source_path.parent

    @property
    def compiler_transcript(self) -> Path:
        return self.directory / f"{self.base_name}_output"

    @property
    def bibliography_transcript(self) -> Path:
        return self.directory / f"{self.base_name}_biboutput"

    @property
    def aux_file(self) -> str:
        return f"{self.base_name}.aux"

    def read_source(self) -> str:
        return self.source_path.read_text(encoding="utf-8", errors="replace")

    @property
    def has_citations(self) -> bool:
        """True when the source text contains the citation marker anywhere."""
        return CITATION_MARKER in self.read_source()


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------

class ToolResult(BaseModel):
    """Outcome of one compiler or bibliography invocation."""
    kind: ToolKind = Field(...)
    command: list[str] = Field(default_factory=list, description="argv that was executed")
    raw_output: str = Field(default="", description="Merged stdout/stderr, verbatim")
    exit_status: int | None = Field(default=None, description="None when the process never completed")
    timed_out: bool = Field(default=False)
    transcript_path: Path | None = Field(default=None, description="File the output was captured into")

    @property
    def failed(self) -> bool:
        return self.exit_status != 0


# ---------------------------------------------------------------------------
# Problem report
# ---------------------------------------------------------------------------

class ProblemReport(BaseModel):
    """Blocks scraped from compiler and bibliography transcripts."""
    warnings: list[str] = Field(default_factory=list)
    compiler_errors: list[str] = Field(default_factory=list)
    bibliography_errors: list[str] = Field(default_factory=list)
    page_count: str | None = Field(default=None, description="Literal page token, e.g. '12 pages'")

    @property
    def is_empty(self) -> bool:
        return not (self.warnings or self.compiler_errors or self.bibliography_errors)

    def merge(self, other: ProblemReport) -> ProblemReport:
        """Concatenate *other*'s blocks after ours; our page count wins when set."""
        return ProblemReport(
            warnings=self.warnings + other.warnings,
            compiler_errors=self.compiler_errors + other.compiler_errors,
            bibliography_errors=self.bibliography_errors + other.bibliography_errors,
            page_count=self.page_count or other.page_count,
        )


# ---------------------------------------------------------------------------
# Build result
# ---------------------------------------------------------------------------

class BuildResult(BaseModel):
    """Top-level result of one controller run."""
    document: Document = Field(...)
    success: bool = Field(default=False)
    states: list[ControllerState] = Field(default_factory=list, description="Visited states, in order")
    passes: list[ToolResult] = Field(default_factory=list, description="Every pass, in order")
    report: ProblemReport = Field(default_factory=ProblemReport)
    rendered_report: str = Field(default="")
    moved_figures: list[Path] = Field(default_factory=list)
    moved_byproducts: list[Path] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def compile_passes(self) -> int:
        return sum(1 for p in self.passes if p.kind == ToolKind.COMPILER)

    @property
    def bibliography_passes(self) -> int:
        return sum(1 for p in self.passes if p.kind == ToolKind.BIBLIOGRAPHY)


# ---------------------------------------------------------------------------
# Configuration (loaded from Hydra / YAML)
# ---------------------------------------------------------------------------

class OrganizerConfig(BaseModel):
    """Tool settings; every field has a CLI override of the same name."""
    compiler: str = Field(default="pdflatex", description="Typesetting compiler executable")
    compiler_flags: list[str] = Field(
        default_factory=lambda: ["-shell-escape", "-file-line-error", "-interaction=nonstopmode"],
    )
    bib_tool: str = Field(default="bibtex", description="Bibliography processor executable")
    bib_flags: list[str] = Field(default_factory=list)

    figures_dir: str = Field(default="Figures", description="Subfolder for image assets")
    misc_dir: str = Field(default="Misc", description="Subfolder for byproducts and transcripts")
    ignore_file: str = Field(default="ignore", description="Name of the ignore list in the project directory")
    source_suffix: str = Field(default=".tex", description="Expected extension of the document argument")

    tool_timeout: int | None = Field(default=300, description="Seconds per tool invocation; None disables")
    strict_tools: bool = Field(default=False, description="Stop passes on a non-zero tool exit status")
    show_report: bool = Field(default=True, description="Print the problem report after the build")
