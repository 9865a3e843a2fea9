"""Thin wrappers spawning the external JDK tools."""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence, TextIO

from .config import ProjectDescriptor, ProjectLayout, Settings
from .errors import ConfigurationError, ToolchainError
from .staleness import check_staleness, find_sources

__all__ = [
    "FX_MODULES",
    "ProcessRunner",
    "Toolchain",
    "run_process",
]

LOGGER = logging.getLogger(__name__)

FX_MODULES = "javafx.controls,javafx.fxml"


class ProcessRunner(Protocol):
    """Callable spawning ``command`` and returning its exit status."""

    def __call__(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        discard_stdout: bool = False,
    ) -> int: ...


def run_process(
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    discard_stdout: bool = False,
) -> int:
    """Run ``command`` to completion and return its exit status.

    Standard error is always inherited so diagnostics from the tool reach the
    user unchanged.
    """

    LOGGER.debug("running %s (cwd=%s)", shlex.join(command), cwd or Path.cwd())
    try:
        completed = subprocess.run(
            list(command),
            cwd=cwd,
            stdout=subprocess.DEVNULL if discard_stdout else None,
            check=False,
        )
    except FileNotFoundError as exc:
        raise ToolchainError(f"command not found: {command[0]}") from exc
    except PermissionError as exc:
        raise ToolchainError(f"cannot execute {command[0]}: {exc.strerror}") from exc
    LOGGER.debug("%s exited with %d", command[0], completed.returncode)
    return completed.returncode


@dataclass(slots=True)
class Toolchain:
    """Build, run and document a project with the configured JDK."""

    descriptor: ProjectDescriptor
    layout: ProjectLayout
    settings: Settings
    runner: ProcessRunner = run_process
    out: TextIO | None = None

    def _relative(self, path: Path) -> str:
        return str(path.relative_to(self.layout.root))

    def _sources(self) -> list[str]:
        return [self._relative(path) for path in find_sources(self.layout.source_dir)]

    def fx_flags(self, use_fx: bool) -> list[str]:
        """Return the module flags that put JavaFX on the module path."""

        if not use_fx:
            return []
        if not self.settings.fx_path:
            raise ConfigurationError(
                "--jfx requires PATH_TO_FX to point at the JavaFX lib directory"
            )
        return ["--module-path", self.settings.fx_path, "--add-modules", FX_MODULES]

    def compile_command(self, flags: Sequence[str] = (), *, use_fx: bool = False) -> list[str]:
        return [
            self.settings.javac,
            "-d",
            self._relative(self.layout.build_dir),
            *self.fx_flags(use_fx),
            *flags,
            *self._sources(),
        ]

    def run_command(
        self,
        program_args: Sequence[str] = (),
        flags: Sequence[str] = (),
        *,
        use_fx: bool = False,
    ) -> list[str]:
        return [
            self.settings.java,
            *self.fx_flags(use_fx),
            *flags,
            "-cp",
            self._relative(self.layout.build_dir),
            self.descriptor.entry_point,
            *program_args,
        ]

    def doc_command(self, flags: Sequence[str] = (), *, use_fx: bool = False) -> list[str]:
        return [
            self.settings.javadoc,
            "-d",
            self._relative(self.layout.docs_dir),
            *self.fx_flags(use_fx),
            *flags,
            *self._sources(),
        ]

    def compile(self, flags: Sequence[str] = (), *, use_fx: bool = False) -> int:
        """Compile every source file into the build directory."""

        command = self.compile_command(flags, use_fx=use_fx)
        if not find_sources(self.layout.source_dir):
            LOGGER.info("no sources under %s, nothing to compile", self.layout.source_dir)
            return 0

        self.layout.build_dir.mkdir(parents=True, exist_ok=True)
        code = self.runner(command, cwd=self.layout.root)
        if code != 0:
            LOGGER.info("compilation failed with exit code %d", code)
            return code

        if flags:
            print(f"Build succeeded with flags: {' '.join(flags)}", file=self.out)
        else:
            print("Build succeeded", file=self.out)
        return 0

    def build(self, flags: Sequence[str] = (), *, use_fx: bool = False) -> int:
        """Compile only when the build output is stale."""

        report = check_staleness(self.layout.source_dir, self.layout.build_dir)
        if not report.stale:
            print("Build is up to date", file=self.out)
            return 0
        return self.compile(flags, use_fx=use_fx)

    def execute(
        self,
        program_args: Sequence[str] = (),
        flags: Sequence[str] = (),
        *,
        use_fx: bool = False,
    ) -> int:
        """Compile if stale, then launch the entry point.

        ``flags`` are handed to the runtime; the compiler only receives the
        JavaFX module flags. The program is not started when compilation
        fails.
        """

        command = self.run_command(program_args, flags, use_fx=use_fx)
        report = check_staleness(self.layout.source_dir, self.layout.build_dir)
        if report.stale:
            LOGGER.info(
                "%d missing and %d outdated classes, compiling before run",
                len(report.missing),
                len(report.outdated),
            )
            code = self.compile(use_fx=use_fx)
            if code != 0:
                return code
        return self.runner(command, cwd=self.layout.root)

    def document(self, flags: Sequence[str] = (), *, use_fx: bool = False) -> int:
        """Generate API documentation into the docs directory."""

        command = self.doc_command(flags, use_fx=use_fx)
        if not find_sources(self.layout.source_dir):
            LOGGER.info("no sources under %s, nothing to document", self.layout.source_dir)
            return 0

        code = self.runner(command, cwd=self.layout.root, discard_stdout=True)
        if code != 0:
            LOGGER.info("javadoc failed with exit code %d", code)
            return code
        print(f"Documentation generated in {self._relative(self.layout.docs_dir)}", file=self.out)
        return 0
