"""CLI entry point using Hydra.

Usage examples:
  texorganizer paper.tex
  texorganizer paper.tex compiler=lualatex strict_tools=true
  texorganizer paper.tex mode=report
  texorganizer mode=organize project_dir=thesis/
  texorganizer paper.tex settings_file=texorganizer.yaml tool_timeout=600

A leading positional argument is the document; it is rewritten to the Hydra
override ``document=<path>`` before Hydra parses the command line.

Exit codes: 0 success, 1 bad usage, 2 I/O failure, 3 tool failure (strict mode).
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import hydra
import yaml
from omegaconf import DictConfig, OmegaConf
from pydantic import ValidationError

from ._hydra_conf import CLI_ONLY_KEYS, register_configs
from .config import load_settings
from .errors import OrganizerError, SettingsFileError, ToolFailedError, UsageError
from .logging_config import RichCallbacks, console, setup_logging
from .models import Document, OrganizerConfig

register_configs()

USAGE = "Usage: texorganizer <document.tex> [key=value ...]"

# Hydra flags whose next argv token is a value, not an override
_FLAGS_WITH_VALUE = frozenset({
    "--config-dir", "-cd", "--config-name", "-cn", "--config-path", "-cp",
})

# ---------------------------------------------------------------------------
# Command-line preprocessing
# ---------------------------------------------------------------------------


def _quote_override_value(value: str) -> str:
    return "'" + value.replace("'", "\\'") + "'"


def _rewrite_positional(argv: list[str]) -> list[str]:
    """Turn the first bare argument into ``document=<path>``.

    Tokens that are flags, flag values or ``key=value`` overrides are left as
    they are.
    """
    out = argv[:1]
    skip_next = False
    rewritten = False
    for arg in argv[1:]:
        if skip_next:
            out.append(arg)
            skip_next = False
            continue
        if arg in _FLAGS_WITH_VALUE:
            out.append(arg)
            skip_next = True
            continue
        if not rewritten and not arg.startswith("-") and "=" not in arg:
            out.append(f"document={_quote_override_value(arg)}")
            rewritten = True
            continue
        out.append(arg)
    return out


def _cli_override_keys(argv: list[str] | None = None) -> set[str]:
    """Keys set explicitly on the command line (``key=value`` tokens)."""
    args = sys.argv[1:] if argv is None else argv
    keys: set[str] = set()
    for arg in args:
        if arg.startswith("-") or "=" not in arg:
            continue
        keys.add(arg.split("=", 1)[0].lstrip("+~"))
    return keys


# ---------------------------------------------------------------------------
# Hydra DictConfig → Pydantic OrganizerConfig bridge
# ---------------------------------------------------------------------------


def _to_organizer_config(cfg: DictConfig, argv: list[str] | None = None) -> OrganizerConfig:
    """Convert a Hydra *DictConfig* to a Pydantic ``OrganizerConfig``.

    CLI-only keys (``mode``, ``document``, etc.) are stripped before
    validation.  When ``settings_file`` is set, its values replace the
    packaged defaults, but keys given explicitly on the command line win.
    """
    container: dict[str, Any] = OmegaConf.to_container(cfg, resolve=True)  # type: ignore[assignment]
    settings_file = container.get("settings_file")
    for key in CLI_ONLY_KEYS:
        container.pop(key, None)

    if settings_file:
        try:
            settings = load_settings(settings_file)
        except OSError as e:
            raise SettingsFileError(f"Cannot read settings file {settings_file}: {e}") from e
        except (ValueError, yaml.YAMLError) as e:
            raise UsageError(f"Invalid settings file {settings_file}: {e}") from e

        explicit = _cli_override_keys(argv)
        for key, value in settings.items():
            if key in CLI_ONLY_KEYS or key in explicit:
                continue
            container[key] = value

    try:
        return OrganizerConfig.model_validate(container)
    except ValidationError as e:
        raise UsageError(f"Invalid configuration: {e}") from e


def _resolve_document(cfg: DictConfig, config: OrganizerConfig) -> Document:
    """Validate the document argument: present, existing, right extension."""
    raw = cfg.get("document")
    if not raw:
        raise UsageError(USAGE)
    path = Path(raw)
    if path.suffix != config.source_suffix:
        raise UsageError(f"{raw} is not a {config.source_suffix} file\n{USAGE}")
    if not path.is_file():
        raise UsageError(f"{raw} does not exist\n{USAGE}")
    return Document(source_path=path.resolve())


# ---------------------------------------------------------------------------
# Mode handlers
# ---------------------------------------------------------------------------


def _build_mode(cfg: DictConfig) -> None:
    config = _to_organizer_config(cfg)
    document = _resolve_document(cfg, config)

    from .pipeline import PassController

    controller = PassController(config, callbacks=RichCallbacks(show_report=config.show_report))
    console.rule(f"[bold blue]{document.source_path.name}[/]")
    result = controller.run(document)

    if result.success:
        console.print(
            f"[bold green]Done[/] ({result.compile_passes} compile, "
            f"{result.bibliography_passes} bibliography pass(es))"
        )
    else:
        console.print("[bold red]Build stopped.[/]")
        for err in result.errors:
            console.print(f"  [red]{err}[/]")
        sys.exit(ToolFailedError.exit_code)


def _organize_mode(cfg: DictConfig) -> None:
    config = _to_organizer_config(cfg)
    if cfg.get("project_dir"):
        project_dir = Path(cfg.project_dir)
    elif cfg.get("document"):
        project_dir = Path(cfg.document).parent
    else:
        project_dir = Path.cwd()

    from .pipeline import PassController

    controller = PassController(config)
    figures, byproducts = controller.organize(project_dir)
    console.print(f"[green]Moved {len(figures)} figure(s) and {len(byproducts)} byproduct(s)[/]")


def _report_mode(cfg: DictConfig) -> None:
    config = _to_organizer_config(cfg)
    document = _resolve_document(cfg, config)

    from .pipeline import PassController
    from .reporter import render

    callbacks = RichCallbacks(show_report=True)
    report = PassController(config, callbacks=callbacks).scrape_existing(document)
    callbacks.on_report(render(report))


_MODE_DISPATCH: dict[str, Any] = {
    "build": _build_mode,
    "organize": _organize_mode,
    "report": _report_mode,
}


# ---------------------------------------------------------------------------
# Hydra entry point
# ---------------------------------------------------------------------------


@hydra.main(config_path="conf", config_name="config", version_base=None)
def hydra_entry(cfg: DictConfig) -> None:
    """Hydra-managed CLI entry point."""
    setup_logging(verbose=cfg.get("verbose", False), quiet=cfg.get("quiet", False))

    mode = cfg.get("mode", "build")
    handler = _MODE_DISPATCH.get(mode)
    if handler is None:
        console.print(f"[red]Unknown mode: {mode!r}. Choose from: {', '.join(_MODE_DISPATCH)}[/]")
        sys.exit(1)

    try:
        handler(cfg)
    except OrganizerError as e:
        console.print(str(e), style="red", markup=False)
        sys.exit(e.exit_code)


def main() -> None:
    """Package entry point (``[project.scripts]`` target)."""
    sys.argv = _rewrite_positional(sys.argv)
    hydra_entry()  # pylint: disable=no-value-for-parameter
