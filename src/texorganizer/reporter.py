"""Plain-text rendering of a ProblemReport."""

from __future__ import annotations

from .models import ProblemReport

SEPARATOR = "-" * 60

_SECTIONS = (
    ("warnings", "Warnings:"),
    ("compiler_errors", "Errors:"),
    ("bibliography_errors", "Bibliography errors:"),
)


def render_page_count(report: ProblemReport) -> str:
    return f"Compiled {report.page_count}" if report.page_count else ""


def render(report: ProblemReport) -> str:
    """Render *report* for the terminal.

    Order is warnings, compiler errors, bibliography errors, page count.
    Empty sections get no header; with no problems at all the separator is
    dropped too and only the page-count line (if any) remains.
    """
    parts: list[str] = []

    if not report.is_empty:
        parts.append(SEPARATOR)
        for field, header in _SECTIONS:
            blocks: list[str] = getattr(report, field)
            if not blocks:
                continue
            parts.append(header)
            parts.extend(blocks)
            parts.append("")

    page_line = render_page_count(report)
    if page_line:
        parts.append(page_line)

    return "\n".join(parts).rstrip("\n")
