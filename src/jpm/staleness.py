"""Decide whether compiled classes are out of date with their sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

__all__ = [
    "SOURCE_SUFFIX",
    "ARTIFACT_SUFFIX",
    "PACKAGE_INFO",
    "StalenessReport",
    "artifact_for",
    "check_staleness",
    "find_sources",
    "needs_rebuild",
]

LOGGER = logging.getLogger(__name__)

SOURCE_SUFFIX = ".java"
ARTIFACT_SUFFIX = ".class"

# Compiled only when annotated, so never required to have an artifact.
PACKAGE_INFO = "package-info.java"


@dataclass(slots=True)
class StalenessReport:
    """Outcome of comparing a source tree against its build output."""

    sources: list[Path] = field(default_factory=list)
    missing: list[Path] = field(default_factory=list)
    outdated: list[Path] = field(default_factory=list)

    @property
    def stale(self) -> bool:
        return bool(self.missing or self.outdated)

    def __bool__(self) -> bool:
        return self.stale


def find_sources(source_dir: str | Path) -> list[Path]:
    """Return every ``.java`` file below ``source_dir`` in a stable order."""

    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        return []
    return sorted(path for path in source_dir.rglob(f"*{SOURCE_SUFFIX}") if path.is_file())


def artifact_for(source: Path, source_dir: Path, build_dir: Path) -> Path:
    """Map ``src/<rel>/X.java`` onto ``bin/<rel>/X.class``."""

    relative = source.relative_to(source_dir)
    return build_dir / relative.with_suffix(ARTIFACT_SUFFIX)


def check_staleness(source_dir: str | Path, build_dir: str | Path) -> StalenessReport:
    """Compare every source with the artifact it is expected to produce.

    A source is stale when its artifact is absent or when the source's
    modification time is strictly greater than the artifact's. Artifacts
    without a source are ignored; ``clean`` is responsible for pruning them.
    """

    source_dir = Path(source_dir)
    build_dir = Path(build_dir)
    report = StalenessReport(sources=find_sources(source_dir))

    for source in report.sources:
        if source.name == PACKAGE_INFO:
            continue
        artifact = artifact_for(source, source_dir, build_dir)
        try:
            artifact_mtime = artifact.stat().st_mtime
        except (FileNotFoundError, NotADirectoryError):
            report.missing.append(source)
            continue
        if source.stat().st_mtime > artifact_mtime:
            report.outdated.append(source)

    LOGGER.debug(
        "staleness of %s: %d sources, %d missing, %d outdated",
        source_dir,
        len(report.sources),
        len(report.missing),
        len(report.outdated),
    )
    return report


def needs_rebuild(source_dir: str | Path, build_dir: str | Path) -> bool:
    """Return True when at least one source must be recompiled."""

    return check_staleness(source_dir, build_dir).stale
