from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from jpm.config import ProjectLayout, Settings
from jpm.errors import ConfigurationError, ToolchainError
from jpm.toolchain import FX_MODULES, Toolchain, run_process


@pytest.fixture()
def project(tmp_path: Path, write_source) -> ProjectLayout:
    root = tmp_path / "Demo"
    write_source(root, "src/App/Main.java", "package App; public class Main {}\n")
    write_source(root, "src/App/Util.java", "package App; class Util {}\n")
    return ProjectLayout(root)


@pytest.fixture()
def toolchain(project, descriptor, settings, fake_runner) -> Toolchain:
    return Toolchain(descriptor, project, settings, fake_runner)


def _age_sources(layout: ProjectLayout, mtime: float = 1_000) -> None:
    for source in layout.source_dir.rglob("*.java"):
        os.utime(source, (mtime, mtime))


def test_compile_command_lists_every_source(toolchain: Toolchain):
    command = toolchain.compile_command(["-Xlint:all"])
    assert command == [
        "javac",
        "-d",
        "bin",
        "-Xlint:all",
        str(Path("src/App/Main.java")),
        str(Path("src/App/Util.java")),
    ]


def test_fx_flags_expand_from_environment(project, descriptor, fake_runner):
    settings = Settings.from_env({"PATH_TO_FX": "/opt/javafx/lib"})
    toolchain = Toolchain(descriptor, project, settings, fake_runner)
    assert toolchain.fx_flags(True) == [
        "--module-path",
        "/opt/javafx/lib",
        "--add-modules",
        FX_MODULES,
    ]
    assert toolchain.fx_flags(False) == []


def test_fx_flags_require_path(toolchain: Toolchain):
    with pytest.raises(ConfigurationError):
        toolchain.fx_flags(True)


def test_compile_reports_success_with_flags(toolchain, fake_runner, capsys):
    assert toolchain.compile(["-g", "-Xlint"]) == 0
    assert capsys.readouterr().out == "Build succeeded with flags: -g -Xlint\n"
    assert fake_runner.calls[0].cwd == toolchain.layout.root
    assert (toolchain.layout.build_dir / "App" / "Main.class").exists()


def test_compile_failure_suppresses_message(toolchain, fake_runner, capsys):
    fake_runner.exit_codes["javac"] = 2
    assert toolchain.compile() == 2
    assert capsys.readouterr().out == ""


def test_compile_without_sources_is_a_no_op(tmp_path, descriptor, settings, fake_runner):
    toolchain = Toolchain(descriptor, ProjectLayout(tmp_path), settings, fake_runner)
    assert toolchain.compile() == 0
    assert fake_runner.calls == []


def test_build_skips_up_to_date_tree(toolchain, fake_runner, capsys):
    _age_sources(toolchain.layout)
    assert toolchain.build() == 0
    assert toolchain.build() == 0
    assert fake_runner.tools == ["javac"]
    assert capsys.readouterr().out.splitlines() == ["Build succeeded", "Build is up to date"]


def test_execute_compiles_stale_tree_first(toolchain, fake_runner):
    assert toolchain.execute(["one", "two"], ["-Xmx64m"]) == 0
    assert fake_runner.tools == ["javac", "java"]
    assert fake_runner.calls[1].command == [
        "java",
        "-Xmx64m",
        "-cp",
        "bin",
        "App.Main",
        "one",
        "two",
    ]


def test_execute_skips_run_when_compile_fails(toolchain, fake_runner):
    fake_runner.exit_codes["javac"] = 1
    assert toolchain.execute() == 1
    assert fake_runner.tools == ["javac"]


def test_execute_runs_directly_when_up_to_date(toolchain, fake_runner):
    _age_sources(toolchain.layout)
    toolchain.compile()
    fake_runner.calls.clear()

    fake_runner.exit_codes["java"] = 3
    assert toolchain.execute() == 3
    assert fake_runner.tools == ["java"]


def test_document_discards_stdout(toolchain, fake_runner, capsys):
    assert toolchain.document(["-private"]) == 0
    call = fake_runner.calls[0]
    assert call.command[:4] == ["javadoc", "-d", "docs", "-private"]
    assert call.discard_stdout
    assert capsys.readouterr().out == "Documentation generated in docs\n"


def test_document_failure_is_propagated(toolchain, fake_runner, capsys):
    fake_runner.exit_codes["javadoc"] = 1
    assert toolchain.document() == 1
    assert capsys.readouterr().out == ""


def test_run_process_returns_exit_status(tmp_path: Path):
    command = [sys.executable, "-c", "print('ignored'); raise SystemExit(3)"]
    assert run_process(command, cwd=tmp_path, discard_stdout=True) == 3


def test_run_process_missing_binary(tmp_path: Path):
    with pytest.raises(ToolchainError) as excinfo:
        run_process(["jpm-definitely-missing-binary"], cwd=tmp_path)
    assert excinfo.value.exit_code == 127


def test_document_without_sources_is_a_no_op(tmp_path, descriptor, settings, fake_runner, capsys):
    toolchain = Toolchain(descriptor, ProjectLayout(tmp_path), settings, fake_runner)
    assert toolchain.document() == 0
    assert fake_runner.calls == []
    assert capsys.readouterr().out == ""
