"""Exception types raised by jpm operations.

Every error carries the process exit code the command line interface should
return when the error reaches it.
"""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "ConfigurationError",
    "DescriptorError",
    "ExitCode",
    "JpmError",
    "NotProjectRootError",
    "ToolchainError",
    "UnsupportedDependencyError",
    "UsageError",
]


class ExitCode(IntEnum):
    """Process exit codes returned by :func:`jpm.cli.main`."""

    OK = 0
    MISSING_ARGUMENTS = 1
    UNKNOWN_COMMAND = 2
    MISSING_NAME = 3
    DIRECTORY_EXISTS = 4
    INVALID_FLAG = 5
    OPERATION_FAILED = 6
    COMMAND_NOT_FOUND = 127


class JpmError(RuntimeError):
    """Base class for failures reported to the user."""

    exit_code: int = ExitCode.OPERATION_FAILED

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class UsageError(JpmError):
    """Raised for missing or unrecognised command line input."""

    exit_code = ExitCode.INVALID_FLAG


class DescriptorError(JpmError):
    """Raised when ``project.jpm`` is missing or cannot be parsed."""


class NotProjectRootError(JpmError):
    """Raised when a project operation is invoked outside the project root."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"not in project root: expected directory '{expected}', found '{actual}'"
        )
        self.expected = expected
        self.actual = actual


class UnsupportedDependencyError(JpmError):
    """Raised when ``add`` receives a dependency it does not know about."""

    def __init__(self, dependency: str) -> None:
        super().__init__(f"unsupported dependency '{dependency}'")
        self.dependency = dependency


class ConfigurationError(JpmError):
    """Raised when required tool settings are missing from the environment."""


class ToolchainError(JpmError):
    """Raised when an external binary cannot be started."""

    exit_code = ExitCode.COMMAND_NOT_FOUND
