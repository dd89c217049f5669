"""Artifact classification and project-directory tidying.

Files in the project directory are sorted into::

    project/
    ├── paper.tex
    ├── paper.pdf           # compiled output, stays
    ├── Figures/            # images and stray PDFs
    └── Misc/               # .aux, .log, .bbl, ... and captured transcripts

Only the immediate directory is scanned, so anything already inside
``Figures/`` or ``Misc/`` is never touched again.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from ..errors import ProjectDirectoryError
from ..models import ArtifactKind

logger = logging.getLogger(__name__)

IgnoreList = tuple[str, ...]

FIGURE_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff", ".eps", ".ps", ".svg",
})

# epstopdf output: figure.eps -> figure-eps-converted-to.pdf
CONVERTED_PDF_SUFFIX = "-eps-converted-to.pdf"

BYPRODUCT_EXTENSIONS = frozenset({
    ".aux", ".bbl", ".blg", ".log",
    ".toc", ".lof", ".lot", ".out",
    ".bib", ".bst",
    ".nav", ".snm", ".vrb",
    ".glo", ".gls", ".glg", ".ist",
    ".alg", ".loa",
    ".idx", ".ind", ".ilg",
    ".sty",
})

# Multi-dot extensions that Path.suffix cannot see
BYPRODUCT_NAME_SUFFIXES = (".synctex.gz",)

TRANSCRIPT_SUFFIXES = ("_output", "_biboutput")


# ---------------------------------------------------------------------------
# Ignore list
# ---------------------------------------------------------------------------


def load_ignore_list(project_dir: str | Path, name: str = "ignore") -> IgnoreList:
    """Read the ignore file: one file name per line, exact match, blanks skipped."""
    path = Path(project_dir) / name
    if not path.is_file():
        return ()
    lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    names = tuple(line.strip() for line in lines if line.strip())
    logger.debug("Loaded %d ignore entries from %s", len(names), path)
    return names


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def is_transcript(path: str | Path, source_suffix: str = ".tex") -> bool:
    """True for ``<base>_output`` / ``<base>_biboutput`` beside ``<base>.tex``."""
    p = Path(path)
    for suffix in TRANSCRIPT_SUFFIXES:
        base = p.name[: -len(suffix)]
        if p.name.endswith(suffix) and base and p.with_name(base + source_suffix).exists():
            return True
    return False


def is_byproduct(path: str | Path, source_suffix: str = ".tex") -> bool:
    p = Path(path)
    lower = p.name.lower()
    if lower.endswith(BYPRODUCT_NAME_SUFFIXES):
        return True
    return Path(lower).suffix in BYPRODUCT_EXTENSIONS or is_transcript(p, source_suffix)


def classify(
    path: str | Path,
    ignore_list: IgnoreList = (),
    *,
    source_suffix: str = ".tex",
) -> ArtifactKind:
    """Decide which bucket *path* belongs to.

    A PDF counts as a figure only when it has no sibling source file of the
    same stem and its name is not in *ignore_list*.  The ignore list does not
    apply to other image formats or to byproducts.
    """
    p = Path(path)
    if p.is_dir():
        return ArtifactKind.UNCLASSIFIED

    name = p.name
    suffix = p.suffix.lower()

    if suffix == ".pdf":
        if name in ignore_list:
            return ArtifactKind.IGNORE
        converted = name.lower().endswith(CONVERTED_PDF_SUFFIX)
        if not converted and p.with_suffix(source_suffix).exists():
            return ArtifactKind.COMPILED_OUTPUT
        return ArtifactKind.FIGURE

    if suffix in FIGURE_EXTENSIONS:
        return ArtifactKind.FIGURE

    if is_byproduct(p, source_suffix):
        return ArtifactKind.AUXILIARY_BYPRODUCT

    return ArtifactKind.UNCLASSIFIED


# ---------------------------------------------------------------------------
# Moving
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> Path:
    """Create *path* (and parents) if missing; failure is fatal."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ProjectDirectoryError(f"Cannot create directory {path}: {e}") from e
    return path


def _move_matching(
    project_dir: Path,
    dest_name: str,
    kind: ArtifactKind,
    ignore_list: IgnoreList,
    source_suffix: str,
) -> list[Path]:
    candidates = sorted(
        f for f in project_dir.iterdir()
        if f.is_file() and classify(f, ignore_list, source_suffix=source_suffix) == kind
    )
    if not candidates:
        return []

    dest = ensure_directory(project_dir / dest_name)
    moved: list[Path] = []
    for src in candidates:
        target = dest / src.name
        try:
            os.replace(src, target)
        except OSError as e:
            logger.warning("Could not move %s to %s: %s", src.name, dest, e)
            continue
        moved.append(target)
    logger.info("Moved %d file(s) to %s", len(moved), dest)
    return moved


def move_figures(
    project_dir: str | Path,
    ignore_list: IgnoreList = (),
    figures_dir: str = "Figures",
    *,
    source_suffix: str = ".tex",
) -> list[Path]:
    """Move every figure in *project_dir* into *figures_dir*.  Returns new paths."""
    return _move_matching(Path(project_dir), figures_dir, ArtifactKind.FIGURE, ignore_list, source_suffix)


def move_byproducts(
    project_dir: str | Path,
    misc_dir: str = "Misc",
    *,
    source_suffix: str = ".tex",
) -> list[Path]:
    """Move build byproducts and captured transcripts into *misc_dir*."""
    return _move_matching(Path(project_dir), misc_dir, ArtifactKind.AUXILIARY_BYPRODUCT, (), source_suffix)


# ---------------------------------------------------------------------------
# Restoring archived files
# ---------------------------------------------------------------------------


def _copy_back(project_dir: Path, misc_dir: str, pattern: str) -> list[Path]:
    archive = project_dir / misc_dir
    if not archive.is_dir():
        return []

    restored: list[Path] = []
    for src in sorted(archive.glob(pattern)):
        target = project_dir / src.name
        # A file produced by the current build is newer than the archived copy
        if not src.is_file() or target.exists() or src.name.endswith(TRANSCRIPT_SUFFIXES):
            continue
        try:
            shutil.copy2(src, target)
        except OSError as e:
            logger.warning("Could not restore %s: %s", src.name, e)
            continue
        restored.append(target)
    if restored:
        logger.debug("Restored %d file(s) from %s", len(restored), archive)
    return restored


def restore_styles(project_dir: str | Path, misc_dir: str = "Misc") -> list[Path]:
    """Copy archived ``.sty`` files back so the compiler can find them."""
    return _copy_back(Path(project_dir), misc_dir, "*.sty")


def restore_archived(project_dir: str | Path, misc_dir: str = "Misc") -> list[Path]:
    """Copy every archived file back (the bibliography tool needs .aux, .bib, .bst)."""
    return _copy_back(Path(project_dir), misc_dir, "*")
