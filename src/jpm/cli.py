"""Command line interface for jpm."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Sequence

from pydantic import ValidationError

from . import __version__
from .config import DEFAULT_DRIVER, DEFAULT_PACKAGE, ProjectDescriptor, ProjectLayout, Settings
from .errors import ConfigurationError, ExitCode, JpmError, UsageError
from .project import ProjectScaffolder, add_dependency, check_root, clean
from .toolchain import ProcessRunner, Toolchain, run_process

LOGGER = logging.getLogger(__name__)

USAGE = """usage: jpm [-v] [--version] <command> [options]

commands:
  new, n NAME       create a new project (-n PACKAGE, -d DRIVER, --no-git)
  init              turn the current directory into a project (--no-git)
  build, b          compile sources when they changed (--jfx, compiler flags)
  run, r            build if needed, then run (--jfx, JVM flags, -- program args)
  clean             remove compiled classes (-d/--doc also removes docs)
  doc               generate javadoc (--jfx, javadoc flags)
  add DEPENDENCY    require a dependency in module-info.java (javafx)
"""

ALIASES = {"n": "new", "b": "build", "r": "run"}
FX_FLAGS = frozenset({"--jfx", "--fx"})
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class CommandParser(argparse.ArgumentParser):
    """Argument parser that reports problems as :class:`UsageError`."""

    def __init__(self, *args, error_code: int = ExitCode.INVALID_FLAG, **kwargs) -> None:
        kwargs.setdefault("allow_abbrev", False)
        super().__init__(*args, **kwargs)
        self.error_code = error_code

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(f"{self.prog}: {message}", exit_code=self.error_code)

    def exit(self, status: int = 0, message: str | None = None) -> None:  # type: ignore[override]
        if message:
            print(message, end="", file=sys.stderr)
        raise ParserExit(status)


class ParserExit(Exception):
    """Raised instead of :class:`SystemExit` once a parser printed its help."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


@dataclass(frozen=True, slots=True)
class Invocation:
    """Everything a command needs for a single run of the tool."""

    settings: Settings
    cwd: Path
    runner: ProcessRunner = run_process

    def toolchain(self) -> Toolchain:
        """Load the descriptor and check we are standing in the project root."""

        descriptor = ProjectDescriptor.load(self.cwd)
        check_root(descriptor, self.cwd)
        return Toolchain(descriptor, ProjectLayout(self.cwd), self.settings, self.runner)


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(error["msg"].removeprefix("Value error, ") for error in exc.errors())


def split_fx_flag(tokens: Sequence[str]) -> tuple[bool, list[str]]:
    """Strip ``--jfx``/``--fx`` from ``tokens`` and report whether it was present."""

    use_fx = any(token in FX_FLAGS for token in tokens)
    return use_fx, [token for token in tokens if token not in FX_FLAGS]


def split_run_arguments(tokens: Sequence[str]) -> tuple[list[str], list[str]]:
    """Separate runtime flags from program arguments.

    Everything after a literal ``--`` belongs to the program. Before it,
    leading tokens starting with ``-`` are runtime flags and the first other
    token starts the program arguments.
    """

    tokens = list(tokens)
    trailing: list[str] = []
    if "--" in tokens:
        marker = tokens.index("--")
        tokens, trailing = tokens[:marker], tokens[marker + 1 :]

    flags: list[str] = []
    for index, token in enumerate(tokens):
        if not token.startswith("-"):
            return flags, tokens[index:] + trailing
        flags.append(token)
    return flags, trailing


def _handle_new(args: Sequence[str], invocation: Invocation) -> int:
    parser = CommandParser(prog="jpm new", description="Create a new project")
    parser.add_argument("name", nargs="?", help="Project and directory name")
    parser.add_argument("-n", "--package", default=DEFAULT_PACKAGE, help="Package of the entry point")
    parser.add_argument("-d", "--driver", default=DEFAULT_DRIVER, help="Class declaring main")
    parser.add_argument("--no-git", action="store_true", help="Skip git initialisation")
    options = parser.parse_args(args)

    if not options.name or not options.name.strip():
        raise UsageError("missing project name", exit_code=ExitCode.MISSING_NAME)

    try:
        descriptor = ProjectDescriptor(
            name=options.name, package=options.package, driver=options.driver
        )
    except ValidationError as exc:
        raise UsageError(_validation_message(exc)) from exc

    scaffolder = ProjectScaffolder(invocation.settings, runner=invocation.runner)
    root = scaffolder.create(invocation.cwd, descriptor, git=not options.no_git)
    print(f"Created project {descriptor.name} at {root}")
    return ExitCode.OK


def _handle_init(args: Sequence[str], invocation: Invocation) -> int:
    parser = CommandParser(prog="jpm init", description="Manage the current directory")
    parser.add_argument("--no-git", action="store_true", help="Skip git initialisation")
    options = parser.parse_args(args)

    scaffolder = ProjectScaffolder(invocation.settings, runner=invocation.runner)
    try:
        descriptor = scaffolder.initialize(invocation.cwd, git=not options.no_git)
    except ValidationError as exc:
        raise UsageError(_validation_message(exc)) from exc
    print(f"Initialised project {descriptor.name} (entry point {descriptor.entry_point})")
    return ExitCode.OK


def _handle_build(args: Sequence[str], invocation: Invocation) -> int:
    use_fx, flags = split_fx_flag(args)
    return invocation.toolchain().build(flags, use_fx=use_fx)


def _handle_run(args: Sequence[str], invocation: Invocation) -> int:
    use_fx, tokens = split_fx_flag(args)
    flags, program_args = split_run_arguments(tokens)
    return invocation.toolchain().execute(program_args, flags, use_fx=use_fx)


def _handle_doc(args: Sequence[str], invocation: Invocation) -> int:
    use_fx, flags = split_fx_flag(args)
    return invocation.toolchain().document(flags, use_fx=use_fx)


def _handle_clean(args: Sequence[str], invocation: Invocation) -> int:
    parser = CommandParser(prog="jpm clean", description="Remove build output")
    parser.add_argument("-d", "--doc", action="store_true", help="Also remove generated docs")
    options = parser.parse_args(args)

    toolchain = invocation.toolchain()
    removed = clean(toolchain.layout, include_docs=options.doc)
    if removed:
        print("Removed " + ", ".join(f"{path.name}/" for path in removed))
    else:
        print("Nothing to clean")
    return ExitCode.OK


def _handle_add(args: Sequence[str], invocation: Invocation) -> int:
    parser = CommandParser(
        prog="jpm add",
        description="Require a dependency in module-info.java",
        error_code=ExitCode.MISSING_ARGUMENTS,
    )
    parser.add_argument("dependency", help="Dependency identifier (javafx)")
    options = parser.parse_args(args)

    toolchain = invocation.toolchain()
    if add_dependency(toolchain.layout, options.dependency):
        print(f"Added {options.dependency} to module-info.java")
    else:
        print(f"{options.dependency} is already required")
    return ExitCode.OK


HANDLERS: Mapping[str, Callable[[Sequence[str], Invocation], int]] = {
    "new": _handle_new,
    "init": _handle_init,
    "build": _handle_build,
    "run": _handle_run,
    "clean": _handle_clean,
    "doc": _handle_doc,
    "add": _handle_add,
}


def configure_logging(level: str) -> None:
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("jpm").setLevel(level)


def main(
    argv: Sequence[str] | None = None,
    env: Mapping[str, str] | None = None,
    *,
    runner: ProcessRunner = run_process,
) -> int:
    tokens = list(sys.argv[1:] if argv is None else argv)

    verbose = False
    while tokens and tokens[0].startswith("-"):
        option = tokens.pop(0)
        if option in {"-h", "--help"}:
            print(USAGE, end="")
            return ExitCode.OK
        if option == "--version":
            print(f"jpm {__version__}")
            return ExitCode.OK
        if option in {"-v", "--verbose"}:
            verbose = True
            continue
        print(f"error: unknown option '{option}'", file=sys.stderr)
        print(USAGE, end="", file=sys.stderr)
        return ExitCode.UNKNOWN_COMMAND

    try:
        settings = Settings.from_env(env)
    except ValidationError as exc:
        error = ConfigurationError(_validation_message(exc))
        print(f"error: {error}", file=sys.stderr)
        return error.exit_code
    configure_logging("DEBUG" if verbose else settings.log_level)

    if not tokens:
        print(USAGE, end="", file=sys.stderr)
        return ExitCode.MISSING_ARGUMENTS

    verb = tokens[0].lower()
    handler = HANDLERS.get(ALIASES.get(verb, verb))
    if handler is None:
        print(f"error: unknown command '{tokens[0]}'", file=sys.stderr)
        print(USAGE, end="", file=sys.stderr)
        return ExitCode.UNKNOWN_COMMAND

    invocation = Invocation(settings=settings, cwd=Path.cwd(), runner=runner)
    LOGGER.debug("dispatching %s with %s", verb, tokens[1:])
    try:
        return handler(tokens[1:], invocation)
    except ParserExit as exc:
        return exc.status
    except JpmError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return int(exc.exit_code)
    except OSError as exc:
        LOGGER.debug("filesystem error during %s", verb, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return ExitCode.OPERATION_FAILED


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
