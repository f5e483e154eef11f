from __future__ import annotations

import json
import os
import stat
import sys
from pathlib import Path

import pytest

from protoncall.errors import ErrorKind, ProtonCallError
from protoncall.index import Index
from protoncall.launcher import LaunchPlan, Proton, execute
from protoncall.runtime import RuntimeVersion
from protoncall.runtime_options import RuntimeOption
from protoncall.version import Version

posix_only = pytest.mark.skipif(os.name == "nt", reason="needs executable shell scripts")

RECORDER = """\
import json
import os
import sys

with open(os.environ["PROTONCALL_TEST_OUT"], "w", encoding="utf-8") as f:
    json.dump({{"argv": sys.argv[1:], "env": {{k: v for k, v in os.environ.items() if k.startswith(("STEAM_COMPAT", "PROTON_"))}}}}, f)
sys.exit({code})
"""


def _write_executable(path: Path, code: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    recorder = path.parent / f"{path.name}_recorder.py"
    recorder.write_text(RECORDER.format(code=code), encoding="utf-8")
    path.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{recorder}" "$@"\n', encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def _setup(tmp_path: Path, code: int = 0):
    common = tmp_path / "common"
    install = common / "Proton 6.3"
    _write_executable(install / "proton", code)
    program = tmp_path / "game.exe"
    program.write_text("MZ", encoding="utf-8")
    compat = tmp_path / "compatdata"
    compat.mkdir()
    steam = tmp_path / "steam"
    steam.mkdir()
    return common, install, program, compat, steam


def test_plan_direct(tmp_path: Path):
    common, install, program, compat, steam = _setup(tmp_path)
    launch = Proton.new(Version.mainline(6, 3), install, program, ["-windowed"], [], compat, steam, None, common)
    plan = launch.plan()
    assert plan.argv == [str(install / "proton"), "run", str(program), "-windowed"]
    assert plan.env == {
        "STEAM_COMPAT_DATA_PATH": str(compat / "Proton 6.3"),
        "STEAM_COMPAT_CLIENT_INSTALL_PATH": str(steam),
    }
    assert plan.runtime is None
    assert (compat / "Proton 6.3").is_dir()


def test_plan_with_options(tmp_path: Path):
    common, install, program, compat, steam = _setup(tmp_path)
    opts = [RuntimeOption.ENABLENVAPI, RuntimeOption.LOG, RuntimeOption.LOG]
    plan = Proton.new(Version.mainline(6, 3), install, program, [], opts, compat, steam).plan()
    assert plan.env["PROTON_LOG"] == "1"
    assert plan.env["PROTON_ENABLE_NVAPI"] == "1"
    assert "PROTON_NO_ESYNC" not in plan.env
    assert len(plan.env) == 4


def test_plan_runtime(tmp_path: Path):
    common, install, program, compat, steam = _setup(tmp_path)
    run = _write_executable(common / "SteamLinuxRuntime_soldier" / "run", 0)
    launch = Proton.new(
        Version.mainline(6, 3), install, program, ["a"], [], compat, steam, RuntimeVersion.SOLDIER, common
    )
    plan = launch.plan()
    assert plan.argv == [str(run), str(install / "proton"), "runinprefix", str(program), "a"]
    assert plan.runtime is RuntimeVersion.SOLDIER
    assert set(plan.env) == {"STEAM_COMPAT_DATA_PATH", "STEAM_COMPAT_CLIENT_INSTALL_PATH"}


def test_plan_runtime_missing(tmp_path: Path):
    common, install, program, compat, steam = _setup(tmp_path)
    launch = Proton.new(
        Version.mainline(6, 3), install, program, [], [], compat, steam, RuntimeVersion.SNIPER, common
    )
    with pytest.raises(ProtonCallError) as exc:
        launch.plan()
    assert exc.value.kind is ErrorKind.RUNTIME_MISSING


def test_proton_missing(tmp_path: Path):
    common, install, program, compat, steam = _setup(tmp_path)
    launch = Proton.new(Version.mainline(7, 0), common / "Proton 7.0", program, compat=compat, steam=steam)
    with pytest.raises(ProtonCallError) as exc:
        launch.plan()
    assert exc.value.kind is ErrorKind.PROTON_MISSING
    assert "7.0" in str(exc.value)


def test_program_missing(tmp_path: Path):
    common, install, program, compat, steam = _setup(tmp_path)
    launch = Proton.new(Version.mainline(6, 3), install, tmp_path / "nope.exe", compat=compat, steam=steam)
    with pytest.raises(ProtonCallError) as exc:
        launch.plan()
    assert exc.value.kind is ErrorKind.PROGRAM_MISSING


def test_compat_dir_failure(tmp_path: Path):
    common, install, program, compat, steam = _setup(tmp_path)
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    launch = Proton.new(Version.mainline(6, 3), install, program, compat=blocker, steam=steam)
    with pytest.raises(ProtonCallError) as exc:
        launch.plan()
    assert exc.value.kind is ErrorKind.PROTON_DIR


@posix_only
def test_run_end_to_end(tmp_path: Path, monkeypatch):
    out = tmp_path / "out.json"
    monkeypatch.setenv("PROTONCALL_TEST_OUT", str(out))
    for name in list(os.environ):
        if name.startswith(("STEAM_COMPAT", "PROTON_")):
            monkeypatch.delenv(name)
    common, _, _, compat, steam = _setup(tmp_path, code=7)

    index = Index.build(common, tmp_path / "cache" / "index")
    install = index.get(Version.mainline(6, 3))
    assert install is not None

    launch = Proton.new(Version.mainline(6, 3), install, Path("/bin/true"), [], [], compat, steam)
    assert launch.run() == 7

    recorded = json.loads(out.read_text(encoding="utf-8"))
    assert recorded["argv"] == ["run", "/bin/true"]
    assert recorded["env"] == {
        "STEAM_COMPAT_DATA_PATH": str(compat / "Proton 6.3"),
        "STEAM_COMPAT_CLIENT_INSTALL_PATH": str(steam),
    }


@posix_only
def test_run_through_runtime(tmp_path: Path, monkeypatch):
    out = tmp_path / "out.json"
    monkeypatch.setenv("PROTONCALL_TEST_OUT", str(out))
    common, install, program, compat, steam = _setup(tmp_path)
    _write_executable(common / "SteamLinuxRuntime_sniper" / "run", 4)

    launch = Proton.new(
        Version.mainline(6, 3), install, program, ["x"], [RuntimeOption.NOFSYNC], compat, steam,
        RuntimeVersion.SNIPER, common,
    )
    assert launch.run() == 4
    recorded = json.loads(out.read_text(encoding="utf-8"))
    assert recorded["argv"] == [str(install / "proton"), "runinprefix", str(program), "x"]
    assert recorded["env"]["PROTON_NO_FSYNC"] == "1"


def test_execute_spawn_failure(tmp_path: Path):
    plan = LaunchPlan(argv=[str(tmp_path / "does-not-exist")], env={})
    with pytest.raises(ProtonCallError) as exc:
        execute(plan)
    assert exc.value.kind is ErrorKind.PROTON_SPAWN

    plan = LaunchPlan(argv=[str(tmp_path / "does-not-exist")], env={}, runtime=RuntimeVersion.DEFAULT)
    with pytest.raises(ProtonCallError) as exc:
        execute(plan)
    assert exc.value.kind is ErrorKind.PROTON_EXIT
