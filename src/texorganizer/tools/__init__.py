"""Deterministic tools: artifact classification, tool invocation, log scraping."""

from .classifier import classify, load_ignore_list, move_byproducts, move_figures
from .log_scraper import has_rerun_signal, scrape
from .runner import SubprocessRunner, ToolRunner

__all__ = [
    "classify",
    "load_ignore_list",
    "move_byproducts",
    "move_figures",
    "has_rerun_signal",
    "scrape",
    "SubprocessRunner",
    "ToolRunner",
]
