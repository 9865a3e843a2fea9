"""Command line project manager for Java.

The package scaffolds Java projects, keeps a small ``project.jpm`` descriptor
at the project root, decides whether compiled classes are stale and drives the
external ``javac``/``java``/``javadoc`` tools. Everything is usable
programmatically as well as through the ``jpm`` command.
"""

from __future__ import annotations

from .config import ProjectDescriptor, ProjectLayout, Settings
from .errors import ExitCode, JpmError
from .project import ProjectScaffolder, add_dependency, check_root, clean
from .staleness import StalenessReport, check_staleness, needs_rebuild
from .toolchain import Toolchain

__all__ = [
    "ExitCode",
    "JpmError",
    "ProjectDescriptor",
    "ProjectLayout",
    "ProjectScaffolder",
    "Settings",
    "StalenessReport",
    "Toolchain",
    "add_dependency",
    "check_root",
    "check_staleness",
    "clean",
    "needs_rebuild",
]

__version__ = "0.1.0"
