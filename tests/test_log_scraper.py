"""Tests for tools/log_scraper.py — rule-table block extraction."""

from __future__ import annotations

import re

from texorganizer.models import ToolKind
from texorganizer.tools.log_scraper import (
    BIBLIOGRAPHY_RULES,
    COMPILER_RULES,
    ScrapeRule,
    extract_blocks,
    extract_page_count,
    has_rerun_signal,
    scrape,
)

_WARNING_RULE = COMPILER_RULES[0]


class TestExtractBlocks:
    def test_block_ends_at_blank_line(self):
        lines = ["noise", "LaTeX Warning: first", "continued", "", "after"]
        assert extract_blocks(lines, _WARNING_RULE) == ["LaTeX Warning: first\ncontinued"]

    def test_warning_followed_by_blank_is_single_line(self):
        lines = ["LaTeX Warning: lonely", "", "LaTeX Warning: also lonely", ""]
        blocks = extract_blocks(lines, _WARNING_RULE)
        assert blocks == ["LaTeX Warning: lonely", "LaTeX Warning: also lonely"]

    def test_no_trigger_no_blocks(self):
        assert extract_blocks(["a", "", "b"], _WARNING_RULE) == []

    def test_block_open_at_end_of_text_is_kept(self):
        lines = ["Package foo Warning: bar", "tail"]
        assert extract_blocks(lines, _WARNING_RULE) == ["Package foo Warning: bar\ntail"]

    def test_whitespace_only_line_counts_as_blank(self):
        lines = ["LaTeX Warning: x", "   ", "not part"]
        assert extract_blocks(lines, _WARNING_RULE) == ["LaTeX Warning: x"]

    def test_trigger_inside_block_does_not_start_new_block(self):
        lines = ["LaTeX Warning: a", "LaTeX Warning: b", ""]
        assert extract_blocks(lines, _WARNING_RULE) == ["LaTeX Warning: a\nLaTeX Warning: b"]

    def test_line_mode_takes_trigger_line_only(self):
        rule = ScrapeRule("w", "bibliography_errors", re.compile("Warning:"), mode="line")
        lines = ["Warning: one", "context", "Warning: two"]
        assert extract_blocks(lines, rule) == ["Warning: one", "Warning: two"]


class TestScrapeCompiler:
    def test_warnings_in_order(self, warnings_log):
        report = scrape(warnings_log, ToolKind.COMPILER)
        assert len(report.warnings) == 5
        assert report.warnings[0].startswith("LaTeX Warning: Citation `knuth1984'")
        assert report.warnings[2] == (
            "Package hyperref Warning: Token not allowed in a PDF string (Unicode):\n"
            "(hyperref)                removing `math shift' on input line 41."
        )

    def test_file_line_errors_before_runaway(self, warnings_log):
        report = scrape(warnings_log, ToolKind.COMPILER)
        assert len(report.compiler_errors) == 2
        assert report.compiler_errors[0].startswith("./paper.tex:57: Undefined control sequence.")
        assert "l.57 \\foo" in report.compiler_errors[0]
        assert report.compiler_errors[1].startswith("Runaway argument?")
        assert "File ended while scanning" in report.compiler_errors[1]

    def test_page_count(self, warnings_log):
        assert scrape(warnings_log, ToolKind.COMPILER).page_count == "12 pages"

    def test_clean_log(self, clean_log):
        report = scrape(clean_log, ToolKind.COMPILER)
        assert report.is_empty
        assert report.page_count == "1 page"

    def test_no_warning_token_means_no_warnings(self):
        report = scrape("all good\n\nnothing to see\n", ToolKind.COMPILER)
        assert report.warnings == []
        assert report.compiler_errors == []
        assert report.page_count is None

    def test_compiler_scrape_ignores_bibliography_rules(self, bib_log):
        report = scrape(bib_log, ToolKind.COMPILER)
        assert report.bibliography_errors == []

    def test_deterministic(self, warnings_log):
        assert scrape(warnings_log, ToolKind.COMPILER) == scrape(warnings_log, ToolKind.COMPILER)


class TestScrapeBibliography:
    def test_blocks_then_line_matches(self, bib_log):
        report = scrape(bib_log, ToolKind.BIBLIOGRAPHY)
        assert report.bibliography_errors == [
            "I found no \\bibdata command---while reading file paper.aux\n"
            "I found no \\bibstyle command---while reading file paper.aux",
            "Warning: empty journal in lamport1994",
        ]

    def test_no_page_count_for_bibliography(self, bib_log):
        assert scrape(bib_log + "\n(3 pages)\n", ToolKind.BIBLIOGRAPHY).page_count is None

    def test_bibliography_does_not_fill_compiler_fields(self, bib_log):
        report = scrape(bib_log, ToolKind.BIBLIOGRAPHY)
        assert report.warnings == []
        assert report.compiler_errors == []


class TestSignals:
    def test_rerun_signal_present(self, warnings_log):
        assert has_rerun_signal(warnings_log) is True

    def test_rerun_signal_absent(self, clean_log):
        assert has_rerun_signal(clean_log) is False

    def test_page_count_scenario(self):
        assert extract_page_count("...\n(12 pages, 340123 bytes)...") == "12 pages"

    def test_single_page(self):
        assert extract_page_count("Output written on a.pdf (1 page, 999 bytes).") == "1 page"

    def test_page_count_absent(self):
        assert extract_page_count("No pages of output.") is None


class TestRuleTables:
    def test_rule_fields_are_report_fields(self):
        fields = {"warnings", "compiler_errors", "bibliography_errors"}
        for rule in COMPILER_RULES + BIBLIOGRAPHY_RULES:
            assert rule.field in fields
            assert rule.mode in {"block", "line"}
