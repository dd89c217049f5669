"""Compiler and bibliography invocations.

Each pass runs in the document's directory and its merged stdout/stderr is
written verbatim to a fresh transcript file (``<base>_output`` for the
compiler, ``<base>_biboutput`` for the bibliography tool).  Exit statuses are
recorded on the returned ``ToolResult`` but never acted upon here.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from ..errors import ProjectDirectoryError
from ..models import Document, OrganizerConfig, ToolKind, ToolResult

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
EXIT_NOT_FOUND = 127


# ---------------------------------------------------------------------------
# Tool availability
# ---------------------------------------------------------------------------


def find_executable(name: str) -> str | None:
    """Find *name* on PATH, also trying the Windows ``.exe`` variant."""
    path = shutil.which(name)
    if path:
        return path
    # WSL interop: Windows .exe may be on PATH but shutil.which misses it
    return shutil.which(f"{name}.exe")


# ---------------------------------------------------------------------------
# Runner protocol
# ---------------------------------------------------------------------------


class ToolRunner(Protocol):
    """What the pass controller needs from the outside world."""

    def compile(self, document: Document) -> ToolResult: ...
    def bibliography(self, document: Document) -> ToolResult: ...


def _as_text(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


def _write_transcript(transcript: Path, text: str) -> None:
    try:
        transcript.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ProjectDirectoryError(f"Cannot write transcript {transcript}: {e}") from e


class SubprocessRunner:
    """Runs the configured tools with :func:`subprocess.run`."""

    def __init__(self, config: OrganizerConfig) -> None:
        self.config = config

    def compile(self, document: Document) -> ToolResult:
        argv = [self.config.compiler, *self.config.compiler_flags, document.source_path.name]
        return self._run(ToolKind.COMPILER, argv, document.directory, document.compiler_transcript)

    def bibliography(self, document: Document) -> ToolResult:
        argv = [self.config.bib_tool, *self.config.bib_flags, document.aux_file]
        return self._run(ToolKind.BIBLIOGRAPHY, argv, document.directory, document.bibliography_transcript)

    def _run(self, kind: ToolKind, argv: list[str], cwd: Path, transcript: Path) -> ToolResult:
        executable = find_executable(argv[0])
        if not executable:
            message = f"{argv[0]} not found on PATH"
            logger.error(message)
            _write_transcript(transcript, message + "\n")
            return ToolResult(
                kind=kind,
                command=argv,
                raw_output=message,
                exit_status=EXIT_NOT_FOUND,
                transcript_path=transcript,
            )

        cmd = [executable, *argv[1:]]
        timeout = self.config.tool_timeout
        logger.info("Running: %s (in %s)", " ".join(argv), cwd)

        exit_status: int | None
        timed_out = False
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(cwd),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
            output = proc.stdout or ""
            exit_status = proc.returncode
        except subprocess.TimeoutExpired as e:
            logger.warning("%s timed out after %ss", argv[0], timeout)
            output = _as_text(e.stdout)
            exit_status = None
            timed_out = True

        # Fresh transcript for every pass
        _write_transcript(transcript, output)

        logger.debug("%s finished: exit_status=%s, %d chars of output", argv[0], exit_status, len(output))
        return ToolResult(
            kind=kind,
            command=cmd,
            raw_output=output,
            exit_status=exit_status,
            timed_out=timed_out,
            transcript_path=transcript,
        )
