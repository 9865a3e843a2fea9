"""Project level operations: scaffolding, root checks, cleaning and dependencies."""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from .config import (
    DEFAULT_DRIVER,
    DEFAULT_PACKAGE,
    MODULE_INFO,
    ProjectDescriptor,
    ProjectLayout,
    Settings,
)
from .errors import (
    ExitCode,
    JpmError,
    NotProjectRootError,
    UnsupportedDependencyError,
    UsageError,
)
from .staleness import find_sources
from .template import TemplateRenderer
from .toolchain import ProcessRunner, run_process

__all__ = [
    "DEPENDENCIES",
    "ProjectScaffolder",
    "add_dependency",
    "check_root",
    "clean",
    "find_entry_point",
    "is_project_root",
]

LOGGER = logging.getLogger(__name__)

# Dependency identifiers accepted by ``add`` and the module they require.
DEPENDENCIES = {"javafx": "javafx.controls"}

DRIVER_TEMPLATE = """package {{ package }};

public class {{ driver }} {
    public static void main(String[] args) {
        System.out.println("Hello from {{ name|literal }}!");
    }
}
"""

MODULE_TEMPLATE = """module {{ name|module }} {
}
"""

README_TEMPLATE = """# {{ name }}

Java project managed by jpm. The entry point is `{{ package }}.{{ driver }}` in
`src/{{ package|path }}/{{ driver }}.java`.

## Development

- `jpm build` compiles `src/` into `bin/` whenever a source changed.
- `jpm run -- ARGS` builds if needed and runs the program with `ARGS`.
- `jpm doc` writes the API documentation to `docs/`.
- `jpm clean` removes compiled classes (`--doc` also removes `docs/`).
"""

GITIGNORE_TEMPLATE = """*.class
bin/
docs/
"""

_MAIN_SIGNATURE = re.compile(r"public\s+static\s+void\s+main\s*\(")
_PACKAGE_DECLARATION = re.compile(r"^\s*package\s+([A-Za-z_$][\w$.]*)\s*;", re.MULTILINE)


def is_project_root(descriptor: ProjectDescriptor, cwd: str | Path) -> bool:
    """Return True when ``cwd`` carries the descriptor's project name."""

    return Path(cwd).resolve().name == descriptor.name


def check_root(descriptor: ProjectDescriptor, cwd: str | Path) -> None:
    """Raise :class:`NotProjectRootError` unless ``cwd`` is the project root."""

    if not is_project_root(descriptor, cwd):
        raise NotProjectRootError(descriptor.name, Path(cwd).resolve().name)


def find_entry_point(source_dir: str | Path) -> tuple[str, str] | None:
    """Locate the first source declaring ``main`` and return ``(package, driver)``.

    The package comes from the file's ``package`` declaration, falling back to
    the folder the file lives in. Classes in the unnamed package are skipped
    because the runtime needs a qualified entry point.
    """

    source_dir = Path(source_dir)
    for source in find_sources(source_dir):
        if source.name == MODULE_INFO:
            continue
        text = source.read_text(encoding="utf-8", errors="replace")
        if not _MAIN_SIGNATURE.search(text):
            continue

        match = _PACKAGE_DECLARATION.search(text)
        if match:
            package = match.group(1)
        else:
            package = ".".join(source.parent.relative_to(source_dir).parts)
        if not package:
            LOGGER.warning("ignoring %s: entry points need a package", source)
            continue
        LOGGER.debug("found entry point %s.%s in %s", package, source.stem, source)
        return package, source.stem
    return None


@dataclass(slots=True)
class ProjectScaffolder:
    """Create or adopt a Java project tree."""

    settings: Settings
    renderer: TemplateRenderer = field(default_factory=TemplateRenderer)
    runner: ProcessRunner = run_process

    def create(self, parent: str | Path, descriptor: ProjectDescriptor, *, git: bool = True) -> Path:
        """Create ``<parent>/<name>`` and populate it.

        The directory is removed again when any later step fails.
        """

        root = Path(parent) / descriptor.name
        if root.exists():
            raise UsageError(
                f"directory '{descriptor.name}' already exists",
                exit_code=ExitCode.DIRECTORY_EXISTS,
            )

        root.mkdir(parents=True)
        try:
            self._populate(ProjectLayout(root), descriptor, git=git, created=[], driver=True)
        except Exception:
            LOGGER.debug("removing partially created project %s", root)
            shutil.rmtree(root, ignore_errors=True)
            raise
        return root

    def initialize(self, root: str | Path, *, git: bool = True) -> ProjectDescriptor:
        """Turn the existing directory ``root`` into a managed project.

        Package and driver are derived from the first source declaring
        ``main``; otherwise a default entry point is generated. Existing files
        are never overwritten, and files created here are removed again when a
        later step fails.
        """

        layout = ProjectLayout(Path(root).resolve())
        if layout.descriptor.exists():
            raise JpmError(f"{layout.root.name} is already a jpm project")

        entry = find_entry_point(layout.source_dir)
        package, driver = entry if entry else (DEFAULT_PACKAGE, DEFAULT_DRIVER)
        descriptor = ProjectDescriptor(name=layout.root.name, package=package, driver=driver)

        created: list[Path] = []
        try:
            self._populate(layout, descriptor, git=git, created=created, driver=entry is None)
        except Exception:
            for path in reversed(created):
                LOGGER.debug("removing %s", path)
                if path.is_dir():
                    shutil.rmtree(path, ignore_errors=True)
                else:
                    path.unlink(missing_ok=True)
            raise
        return descriptor

    def _populate(
        self,
        layout: ProjectLayout,
        descriptor: ProjectDescriptor,
        *,
        git: bool,
        created: list[Path],
        driver: bool,
    ) -> None:
        context = {
            "name": descriptor.name,
            "package": descriptor.package,
            "driver": descriptor.driver,
        }

        files = [
            (layout.module_info, MODULE_TEMPLATE),
            (layout.root / "README.md", README_TEMPLATE),
        ]
        if driver:
            files.insert(0, (layout.root / descriptor.driver_path, DRIVER_TEMPLATE))
        if git:
            files.append((layout.root / ".gitignore", GITIGNORE_TEMPLATE))

        for directory in (layout.source_dir, layout.build_dir):
            if not directory.exists():
                directory.mkdir(parents=True)
                created.append(directory)

        for destination, template in files:
            if destination.exists():
                LOGGER.debug("keeping existing %s", destination)
                continue
            self._mkdirs(destination.parent, created)
            destination.write_text(self.renderer.render_string(template, context), encoding="utf-8")
            created.append(destination)

        created.append(descriptor.save(layout.root))

        if git and not (layout.root / ".git").exists():
            code = self.runner([self.settings.git, "init", "--quiet"], cwd=layout.root)
            created.append(layout.root / ".git")
            if code != 0:
                raise JpmError(f"git init failed with exit code {code}", exit_code=code)

    @staticmethod
    def _mkdirs(directory: Path, created: list[Path]) -> None:
        missing = []
        while not directory.exists():
            missing.append(directory)
            directory = directory.parent
        for path in reversed(missing):
            path.mkdir()
            created.append(path)


def clean(layout: ProjectLayout, *, include_docs: bool = False) -> list[Path]:
    """Delete compiled classes (and generated docs) and return what was removed."""

    targets = [layout.build_dir]
    if include_docs:
        targets.append(layout.docs_dir)

    removed = []
    for target in targets:
        if not target.exists():
            continue
        shutil.rmtree(target)
        removed.append(target)
        LOGGER.debug("removed %s", target)

    layout.build_dir.mkdir(exist_ok=True)
    return removed


def add_dependency(layout: ProjectLayout, dependency: str) -> bool:
    """Require ``dependency`` in ``module-info.java``.

    Returns False when the module already requires it.
    """

    module = DEPENDENCIES.get(dependency.strip().lower())
    if module is None:
        raise UnsupportedDependencyError(dependency)

    module_info = layout.module_info
    if not module_info.is_file():
        raise JpmError(f"{MODULE_INFO} not found in {layout.source_dir.name}/")

    text = module_info.read_text(encoding="utf-8")
    already = re.compile(rf"\brequires\s+(?:(?:transitive|static)\s+)*{re.escape(module)}\s*;")
    if already.search(text):
        return False

    closing = text.rfind("}")
    if closing == -1:
        raise JpmError(f"malformed {MODULE_INFO}: missing closing brace")

    updated = f"{text[:closing].rstrip()}\n    requires {module};\n{text[closing:]}"
    module_info.write_text(updated, encoding="utf-8")
    LOGGER.debug("added requires %s to %s", module, module_info)
    return True
