from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from jpm.config import ProjectDescriptor, Settings  # noqa: E402 (import after sys.path setup)


@dataclass(slots=True)
class RecordedCall:
    command: list[str]
    cwd: Path | None
    discard_stdout: bool

    @property
    def tool(self) -> str:
        return Path(self.command[0]).name


class FakeRunner:
    """Process runner double that records commands instead of spawning them.

    Successful ``javac`` calls write an empty ``.class`` file for every source
    on the command line and ``git`` calls create a ``.git`` folder, so the
    filesystem looks like the real tools ran.
    """

    def __init__(self, exit_codes: Mapping[str, int] | None = None) -> None:
        self.exit_codes = dict(exit_codes or {})
        self.calls: list[RecordedCall] = []

    def __call__(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        discard_stdout: bool = False,
    ) -> int:
        call = RecordedCall(list(command), cwd, discard_stdout)
        self.calls.append(call)
        code = self.exit_codes.get(call.tool, 0)
        if code == 0 and cwd is not None:
            if call.tool == "javac":
                self._emit_classes(call.command, Path(cwd))
            elif call.tool == "git":
                (Path(cwd) / ".git").mkdir(exist_ok=True)
        return code

    @property
    def tools(self) -> list[str]:
        return [call.tool for call in self.calls]

    @staticmethod
    def _emit_classes(command: list[str], cwd: Path) -> None:
        build_dir = cwd / command[command.index("-d") + 1]
        for argument in command:
            if not argument.endswith(".java"):
                continue
            relative = Path(argument).relative_to("src")
            artifact = build_dir / relative.with_suffix(".class")
            artifact.parent.mkdir(parents=True, exist_ok=True)
            artifact.write_bytes(b"")


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def settings() -> Settings:
    return Settings.from_env({})


@pytest.fixture()
def descriptor() -> ProjectDescriptor:
    return ProjectDescriptor(name="Demo")


@pytest.fixture()
def write_source():
    def write(root: Path, relative: str, content: str = "class X {}\n") -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return write
