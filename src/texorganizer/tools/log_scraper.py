"""Block extraction from compiler and bibliography transcripts.

Every rule in ``COMPILER_RULES`` / ``BIBLIOGRAPHY_RULES`` runs as an
independent scan over the transcript lines.  A ``block`` rule starts at a
trigger line and keeps collecting lines until the next blank line (the blank
line itself is not part of the block).  A ``line`` rule takes the trigger line
alone.  Blocks from the rules that share a target field are concatenated in
rule-table order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from ..models import ProblemReport, ToolKind

logger = logging.getLogger(__name__)

RERUN_SIGNAL = "Rerun to get cross-references right"

# "(12 pages, 340123 bytes)" / "(1 page, 2048 bytes)"
_PAGE_COUNT_RE = re.compile(r"\((\d+ pages?)\b")


class ScanState(str, Enum):
    SCANNING = "scanning"
    IN_BLOCK = "in_block"


@dataclass(frozen=True)
class ScrapeRule:
    """One row of the scraping table."""
    name: str
    field: str
    trigger: re.Pattern[str]
    mode: str = "block"


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

COMPILER_RULES: tuple[ScrapeRule, ...] = (
    ScrapeRule("warning", "warnings", re.compile(r"Warning")),
    # -file-line-error format: ./main.tex:42: Undefined control sequence.
    ScrapeRule("file_line_error", "compiler_errors", re.compile(r"^\S+?:\d+:")),
    ScrapeRule("runaway_argument", "compiler_errors", re.compile(r"Runaway argument")),
)

BIBLIOGRAPHY_RULES: tuple[ScrapeRule, ...] = (
    ScrapeRule("missing_entry", "bibliography_errors", re.compile(r"I found no")),
    ScrapeRule("bib_warning", "bibliography_errors", re.compile(r"Warning:"), mode="line"),
)

_RULES_BY_KIND: dict[ToolKind, tuple[ScrapeRule, ...]] = {
    ToolKind.COMPILER: COMPILER_RULES,
    ToolKind.BIBLIOGRAPHY: BIBLIOGRAPHY_RULES,
}


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


def _is_blank(line: str) -> bool:
    return not line.strip()


def extract_blocks(lines: list[str], rule: ScrapeRule) -> list[str]:
    """Run *rule* over *lines* and return the matched blocks in order."""
    blocks: list[str] = []
    current: list[str] = []
    state = ScanState.SCANNING

    for line in lines:
        if state is ScanState.IN_BLOCK:
            if _is_blank(line):
                blocks.append("\n".join(current))
                current = []
                state = ScanState.SCANNING
            else:
                current.append(line)
            continue

        if not rule.trigger.search(line):
            continue
        if rule.mode == "line":
            blocks.append(line)
        else:
            current = [line]
            state = ScanState.IN_BLOCK

    # Transcript ended inside a block
    if state is ScanState.IN_BLOCK and current:
        blocks.append("\n".join(current))
    return blocks


def extract_page_count(log_text: str) -> str | None:
    """Return the literal ``N page(s)`` token from the output summary, if any."""
    m = _PAGE_COUNT_RE.search(log_text)
    return m.group(1) if m else None


def has_rerun_signal(log_text: str) -> bool:
    """True when the compiler asks for another pass to settle cross-references."""
    return RERUN_SIGNAL in log_text


def scrape(log_text: str, kind: ToolKind) -> ProblemReport:
    """Extract the problem fragment for one transcript.

    Parameters
    ----------
    log_text : str
        Raw transcript (stdout and stderr of one pass).
    kind : ToolKind
        Which rule table applies.  Compiler transcripts also yield the page
        count.
    """
    lines = log_text.splitlines()
    found: dict[str, list[str]] = {"warnings": [], "compiler_errors": [], "bibliography_errors": []}

    for rule in _RULES_BY_KIND[kind]:
        blocks = extract_blocks(lines, rule)
        if blocks:
            logger.debug("Rule %s matched %d block(s)", rule.name, len(blocks))
        found[rule.field].extend(blocks)

    page_count = extract_page_count(log_text) if kind == ToolKind.COMPILER else None
    return ProblemReport(page_count=page_count, **found)
