"""Pass controller — compilation orchestration for one LaTeX document.

IDLE              — validate the project directory
FIGURES_MOVED     — stray images and PDFs moved to Figures/
COMPILED          — first compiler pass
BIB_CYCLE         — only when the source mentions ``cite``: bibliography
                    pass followed by two compiler passes
RERUN_COMPILED    — one extra compiler pass when the last transcript asks
                    for a rerun (never more than one)
PROBLEMS_EXTRACTED — transcripts scraped and rendered
ARTIFACTS_MOVED   — byproducts and transcripts moved to Misc/
DONE
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .errors import ProjectDirectoryError, ToolFailedError
from .logging_config import BuildCallbacks, RichCallbacks
from .models import (
    BuildResult,
    ControllerState,
    Document,
    OrganizerConfig,
    ProblemReport,
    ToolKind,
    ToolResult,
)
from .reporter import render
from .tools.classifier import (
    load_ignore_list,
    move_byproducts,
    move_figures,
    restore_archived,
    restore_styles,
)
from .tools.log_scraper import has_rerun_signal, scrape
from .tools.runner import SubprocessRunner, ToolRunner

logger = logging.getLogger(__name__)

MAX_RERUN_PASSES = 1
POST_BIBLIOGRAPHY_PASSES = 2


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _check_project_dir(directory: Path) -> Path:
    """Fail fast when the project directory cannot be entered."""
    if not directory.is_dir():
        raise ProjectDirectoryError(f"Project directory not found: {directory}")
    if not os.access(directory, os.R_OK | os.W_OK | os.X_OK):
        raise ProjectDirectoryError(f"Project directory not accessible: {directory}")
    return directory


def _last_pass(passes: list[ToolResult], kind: ToolKind) -> ToolResult | None:
    for p in reversed(passes):
        if p.kind == kind:
            return p
    return None


def _read_transcript(candidates: list[Path]) -> str | None:
    for path in candidates:
        if path.is_file():
            return path.read_text(encoding="utf-8", errors="replace")
    return None


class PassController:
    """Runs the compiler / bibliography sequence for one document.

    The project directory is passed explicitly to every collaborator; the
    process working directory is never changed.
    """

    def __init__(
        self,
        config: OrganizerConfig | None = None,
        runner: ToolRunner | None = None,
        callbacks: BuildCallbacks | None = None,
    ) -> None:
        self.config = config or OrganizerConfig()
        self.runner = runner or SubprocessRunner(self.config)
        self.callbacks = callbacks or RichCallbacks(show_report=self.config.show_report)

    # -----------------------------------------------------------------------
    # State bookkeeping
    # -----------------------------------------------------------------------

    def _enter(self, build: BuildResult, state: ControllerState) -> None:
        build.states.append(state)
        logger.debug("Controller state: %s", state.value)
        self.callbacks.on_state(state)

    def _invoke(self, build: BuildResult, kind: ToolKind) -> ToolResult:
        number = len(build.passes) + 1
        label = self.config.compiler if kind == ToolKind.COMPILER else self.config.bib_tool
        self.callbacks.on_pass_start(label, number)

        if kind == ToolKind.COMPILER:
            result = self.runner.compile(build.document)
        else:
            result = self.runner.bibliography(build.document)

        build.passes.append(result)
        self.callbacks.on_pass_end(result)

        if self.config.strict_tools and result.failed:
            status = "timed out" if result.timed_out else f"exited with status {result.exit_status}"
            raise ToolFailedError(f"{label} (pass {number}) {status}")
        return result

    # -----------------------------------------------------------------------
    # Phases
    # -----------------------------------------------------------------------

    def _run_passes(self, build: BuildResult, has_citations: bool) -> None:
        project_dir = build.document.directory

        restore_styles(project_dir, self.config.misc_dir)
        last = self._invoke(build, ToolKind.COMPILER)
        self._enter(build, ControllerState.COMPILED)

        if has_citations:
            self._enter(build, ControllerState.BIB_CYCLE)
            restore_archived(project_dir, self.config.misc_dir)
            self._invoke(build, ToolKind.BIBLIOGRAPHY)
            for _ in range(POST_BIBLIOGRAPHY_PASSES):
                last = self._invoke(build, ToolKind.COMPILER)

        if has_rerun_signal(last.raw_output):
            logger.info("Compiler requested a rerun for cross-references")
            for _ in range(MAX_RERUN_PASSES):
                last = self._invoke(build, ToolKind.COMPILER)
            self._enter(build, ControllerState.RERUN_COMPILED)

    def _extract_problems(self, build: BuildResult, has_citations: bool) -> ProblemReport:
        report = ProblemReport()

        compile_pass = _last_pass(build.passes, ToolKind.COMPILER)
        if compile_pass is not None:
            report = scrape(compile_pass.raw_output, ToolKind.COMPILER)

        bib_pass = _last_pass(build.passes, ToolKind.BIBLIOGRAPHY)
        if has_citations and bib_pass is not None:
            report = report.merge(scrape(bib_pass.raw_output, ToolKind.BIBLIOGRAPHY))

        return report

    # -----------------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------------

    def run(self, document: Document) -> BuildResult:
        """Build *document* and tidy its directory.

        Raises ``ProjectDirectoryError`` when the project directory cannot be
        entered or a destination folder cannot be created.  Tool failures are
        recorded on the result (strict mode) or ignored.
        """
        result = BuildResult(document=document)
        self._enter(result, ControllerState.IDLE)

        project_dir = _check_project_dir(document.directory)
        ignore_list = load_ignore_list(project_dir, self.config.ignore_file)

        result.moved_figures = move_figures(
            project_dir, ignore_list, self.config.figures_dir,
            source_suffix=self.config.source_suffix,
        )
        self._enter(result, ControllerState.FIGURES_MOVED)

        has_citations = document.has_citations
        logger.info("%s: citations %s", document.source_path.name, "found" if has_citations else "not found")

        try:
            self._run_passes(result, has_citations)
        except ToolFailedError as e:
            logger.error("%s", e)
            result.errors.append(str(e))
            self.callbacks.on_error(str(e))

        result.report = self._extract_problems(result, has_citations)
        result.rendered_report = render(result.report)
        self._enter(result, ControllerState.PROBLEMS_EXTRACTED)
        self.callbacks.on_report(result.rendered_report)

        result.moved_byproducts = move_byproducts(
            project_dir, self.config.misc_dir, source_suffix=self.config.source_suffix,
        )
        self._enter(result, ControllerState.ARTIFACTS_MOVED)

        result.success = not result.errors
        self._enter(result, ControllerState.DONE)
        logger.info(
            "Build finished: %d compiler pass(es), %d bibliography pass(es)",
            result.compile_passes, result.bibliography_passes,
        )
        return result

    def organize(self, project_dir: str | Path) -> tuple[list[Path], list[Path]]:
        """Tidy *project_dir* without compiling: figures first, then byproducts."""
        directory = _check_project_dir(Path(project_dir))
        ignore_list = load_ignore_list(directory, self.config.ignore_file)
        figures = move_figures(
            directory, ignore_list, self.config.figures_dir,
            source_suffix=self.config.source_suffix,
        )
        byproducts = move_byproducts(directory, self.config.misc_dir, source_suffix=self.config.source_suffix)
        return figures, byproducts

    def scrape_existing(self, document: Document) -> ProblemReport:
        """Rebuild the problem report from transcripts left by an earlier build."""
        misc = document.directory / self.config.misc_dir
        compile_text = _read_transcript([
            document.compiler_transcript,
            misc / document.compiler_transcript.name,
        ])
        if compile_text is None:
            self.callbacks.on_warning(f"No compiler transcript found for {document.base_name}")
            return ProblemReport()

        report = scrape(compile_text, ToolKind.COMPILER)
        if document.has_citations:
            bib_text = _read_transcript([
                document.bibliography_transcript,
                misc / document.bibliography_transcript.name,
            ])
            if bib_text is not None:
                report = report.merge(scrape(bib_text, ToolKind.BIBLIOGRAPHY))
        return report
