"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from texorganizer.models import Document, ToolKind, ToolResult

FIXTURES_DIR = Path(__file__).parent / "fixtures"
SAMPLE_LOGS = FIXTURES_DIR / "sample_logs"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def warnings_log() -> str:
    return (SAMPLE_LOGS / "compile_warnings.txt").read_text(encoding="utf-8")


@pytest.fixture
def clean_log() -> str:
    return (SAMPLE_LOGS / "compile_clean.txt").read_text(encoding="utf-8")


@pytest.fixture
def bib_log() -> str:
    return (SAMPLE_LOGS / "bib_errors.txt").read_text(encoding="utf-8")


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    proj = tmp_path / "project"
    proj.mkdir()
    return proj


@pytest.fixture
def plain_document(project_dir: Path) -> Document:
    """A document without any citation marker."""
    src = project_dir / "paper.tex"
    src.write_text(
        "\\documentclass{article}\n\\begin{document}\nHello.\n\\end{document}\n",
        encoding="utf-8",
    )
    return Document(source_path=src)


@pytest.fixture
def cited_document(project_dir: Path) -> Document:
    """A document that cites a reference."""
    src = project_dir / "paper.tex"
    src.write_text(
        "\\documentclass{article}\n\\begin{document}\n"
        "As shown in \\cite{knuth1984}.\n"
        "\\bibliographystyle{plain}\n\\bibliography{refs}\n\\end{document}\n",
        encoding="utf-8",
    )
    return Document(source_path=src)


class FakeRunner:
    """Scripted ToolRunner: returns queued outputs and writes transcripts like the real one.

    When a queue runs dry its last entry is repeated.
    """

    def __init__(
        self,
        compile_outputs: list[str] | None = None,
        bib_outputs: list[str] | None = None,
        *,
        compile_status: int = 0,
        bib_status: int = 0,
        byproducts: tuple[str, ...] = (".aux", ".log"),
    ) -> None:
        self.compile_outputs = list(compile_outputs or [""])
        self.bib_outputs = list(bib_outputs or [""])
        self.compile_status = compile_status
        self.bib_status = bib_status
        self.byproducts = byproducts
        self.calls: list[ToolKind] = []
        self.seen_files: list[set[str]] = []

    @staticmethod
    def _next(queue: list[str]) -> str:
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def _record(self, document: Document, kind: ToolKind) -> None:
        self.calls.append(kind)
        self.seen_files.append({p.name for p in document.directory.iterdir()})

    def compile(self, document: Document) -> ToolResult:
        self._record(document, ToolKind.COMPILER)
        output = self._next(self.compile_outputs)
        for ext in self.byproducts:
            (document.directory / f"{document.base_name}{ext}").write_text("generated", encoding="utf-8")
        (document.directory / f"{document.base_name}.pdf").write_bytes(b"%PDF-fake")
        document.compiler_transcript.write_text(output, encoding="utf-8")
        return ToolResult(
            kind=ToolKind.COMPILER,
            command=["pdflatex", document.source_path.name],
            raw_output=output,
            exit_status=self.compile_status,
            transcript_path=document.compiler_transcript,
        )

    def bibliography(self, document: Document) -> ToolResult:
        self._record(document, ToolKind.BIBLIOGRAPHY)
        output = self._next(self.bib_outputs)
        document.bibliography_transcript.write_text(output, encoding="utf-8")
        return ToolResult(
            kind=ToolKind.BIBLIOGRAPHY,
            command=["bibtex", document.aux_file],
            raw_output=output,
            exit_status=self.bib_status,
            transcript_path=document.bibliography_transcript,
        )


@pytest.fixture
def make_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner
