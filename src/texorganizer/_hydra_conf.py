"""Hydra structured config dataclasses.

These mirror the Pydantic ``OrganizerConfig`` for Hydra schema validation.
At runtime the Hydra DictConfig is converted to ``OrganizerConfig`` via
``cli._to_organizer_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from hydra.core.config_store import ConfigStore


@dataclass
class TexConf:
    # --- Dispatch + CLI-only fields ---
    mode: str = "build"
    document: Optional[str] = None
    project_dir: Optional[str] = None
    settings_file: Optional[str] = None
    verbose: bool = False
    quiet: bool = False

    # --- OrganizerConfig fields (1:1 mapping) ---
    compiler: str = "pdflatex"
    compiler_flags: list[str] = field(default_factory=lambda: [
        "-shell-escape",
        "-file-line-error",
        "-interaction=nonstopmode",
    ])
    bib_tool: str = "bibtex"
    bib_flags: list[str] = field(default_factory=list)

    figures_dir: str = "Figures"
    misc_dir: str = "Misc"
    ignore_file: str = "ignore"
    source_suffix: str = ".tex"

    tool_timeout: Optional[int] = 300
    strict_tools: bool = False
    show_report: bool = True


# Keys present in TexConf that are NOT part of OrganizerConfig.
CLI_ONLY_KEYS = frozenset({
    "mode", "document", "project_dir", "settings_file", "verbose", "quiet",
})


def register_configs() -> None:
    """Register the structured config schema with Hydra's ConfigStore."""
    cs = ConfigStore.instance()
    cs.store(name="texorganizer_schema", node=TexConf)
