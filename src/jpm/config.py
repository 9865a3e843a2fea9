"""Project descriptor and tool settings shared by the CLI and operations."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import DescriptorError
from .naming import is_java_identifier, is_package_name, package_to_path

__all__ = [
    "BUILD_DIR",
    "CONFIG_FILENAME",
    "DEFAULT_DRIVER",
    "DEFAULT_PACKAGE",
    "DOCS_DIR",
    "MODULE_INFO",
    "SOURCE_DIR",
    "ProjectDescriptor",
    "ProjectLayout",
    "Settings",
]

LOGGER = logging.getLogger(__name__)

CONFIG_FILENAME = "project.jpm"
SOURCE_DIR = "src"
BUILD_DIR = "bin"
DOCS_DIR = "docs"
MODULE_INFO = "module-info.java"
DEFAULT_PACKAGE = "App"
DEFAULT_DRIVER = "Main"

_RECORD_KEYS = ("name", "package", "driver")


class ProjectDescriptor(BaseModel):
    """Persisted identity of a managed project.

    Attributes
    ----------
    name:
        The project root directory name. Project scoped operations refuse to
        run unless the working directory carries this base name.
    package:
        Package holding the entry point. Dotted packages map onto nested
        folders below ``src``.
    driver:
        Base name of the source file declaring ``main``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., description="Project root directory name.")
    package: str = Field(DEFAULT_PACKAGE, description="Package of the entry point.")
    driver: str = Field(DEFAULT_DRIVER, description="Class declaring the entry point.")

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("project name must not be empty")
        if any(char in value for char in "/\\,:") or value in {".", ".."}:
            raise ValueError(f"invalid project name '{value}'")
        return value

    @field_validator("package")
    @classmethod
    def _check_package(cls, value: str) -> str:
        value = value.strip()
        if not is_package_name(value):
            raise ValueError(f"invalid package name '{value}'")
        return value

    @field_validator("driver")
    @classmethod
    def _check_driver(cls, value: str) -> str:
        value = value.strip()
        if value.endswith(".java"):
            value = value[: -len(".java")]
        if not is_java_identifier(value):
            raise ValueError(f"invalid driver name '{value}'")
        return value

    @property
    def entry_point(self) -> str:
        """Fully qualified name handed to the runtime."""

        return f"{self.package}.{self.driver}"

    @property
    def package_path(self) -> PurePosixPath:
        return PurePosixPath(SOURCE_DIR) / package_to_path(self.package)

    @property
    def driver_path(self) -> PurePosixPath:
        return self.package_path / f"{self.driver}.java"

    def to_record(self) -> str:
        """Serialise to the ``name:<n>,package:<p>,driver:<d>`` record."""

        return ",".join(f"{key}:{getattr(self, key)}" for key in _RECORD_KEYS)

    @classmethod
    def from_record(cls, record: str) -> "ProjectDescriptor":
        """Parse a descriptor record produced by :meth:`to_record`."""

        values: dict[str, str] = {}
        for field in record.strip().split(","):
            if not field.strip():
                continue
            key, separator, value = field.partition(":")
            key = key.strip()
            if not separator:
                raise DescriptorError(f"malformed descriptor field '{field.strip()}'")
            if key not in _RECORD_KEYS:
                raise DescriptorError(f"unknown descriptor key '{key}'")
            values[key] = value.strip()

        missing = [key for key in _RECORD_KEYS if key not in values]
        if missing:
            raise DescriptorError(f"descriptor is missing {', '.join(missing)}")

        try:
            return cls(**values)
        except ValidationError as exc:
            reason = "; ".join(error["msg"] for error in exc.errors())
            raise DescriptorError(f"invalid descriptor: {reason}") from exc

    @classmethod
    def load(cls, root: str | Path) -> "ProjectDescriptor":
        """Read the descriptor stored in ``root``."""

        path = Path(root) / CONFIG_FILENAME
        if not path.is_file():
            raise DescriptorError(f"no {CONFIG_FILENAME} found in {Path(root).resolve()}")
        descriptor = cls.from_record(path.read_text(encoding="utf-8"))
        LOGGER.debug("loaded descriptor %s from %s", descriptor.to_record(), path)
        return descriptor

    def save(self, root: str | Path) -> Path:
        """Write the descriptor into ``root`` and return the file path."""

        path = Path(root) / CONFIG_FILENAME
        path.write_text(self.to_record() + "\n", encoding="utf-8")
        LOGGER.debug("wrote descriptor %s to %s", self.to_record(), path)
        return path


@dataclass(frozen=True, slots=True)
class ProjectLayout:
    """Well known locations inside a project root."""

    root: Path

    @property
    def descriptor(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def source_dir(self) -> Path:
        return self.root / SOURCE_DIR

    @property
    def build_dir(self) -> Path:
        return self.root / BUILD_DIR

    @property
    def docs_dir(self) -> Path:
        return self.root / DOCS_DIR

    @property
    def module_info(self) -> Path:
        return self.source_dir / MODULE_INFO


class Settings(BaseModel):
    """Tool level settings read from the process environment."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    fx_path: str | None = Field(None, description="JavaFX module path ($PATH_TO_FX).")
    javac: str = Field("javac", description="Compiler executable.")
    java: str = Field("java", description="Runtime executable.")
    javadoc: str = Field("javadoc", description="Documentation generator executable.")
    git: str = Field("git", description="Version control executable.")
    log_level: str = Field("WARNING", description="Default logging level.")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level '{value}'")
        return level

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``env`` (defaults to :data:`os.environ`).

        ``JPM_JAVAC``, ``JPM_JAVA``, ``JPM_JAVADOC`` and ``JPM_GIT`` override
        individual executables. Otherwise JDK tools are looked up under
        ``$JAVA_HOME/bin`` when ``JAVA_HOME`` is set, or on ``PATH``.
        """

        environment: Mapping[str, str] = env if env is not None else os.environ
        java_home = environment.get("JAVA_HOME")

        def jdk_tool(tool: str) -> str:
            override = environment.get(f"JPM_{tool.upper()}")
            if override:
                return override
            if java_home:
                return str(Path(java_home) / "bin" / tool)
            return tool

        return cls(
            fx_path=environment.get("PATH_TO_FX") or None,
            javac=jdk_tool("javac"),
            java=jdk_tool("java"),
            javadoc=jdk_tool("javadoc"),
            git=environment.get("JPM_GIT") or "git",
            log_level=environment.get("JPM_LOG_LEVEL") or "WARNING",
        )
