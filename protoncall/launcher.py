from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .errors import ErrorKind, ProtonCallError
from .runtime import RuntimeVersion
from .runtime_options import RuntimeOption, option_environment
from .version import Version

logger = logging.getLogger(__name__)

PROTON_EXECUTABLE = "proton"
COMPAT_DATA_VAR = "STEAM_COMPAT_DATA_PATH"
CLIENT_INSTALL_VAR = "STEAM_COMPAT_CLIENT_INSTALL_PATH"


@dataclass(frozen=True)
class LaunchPlan:
    argv: List[str]
    env: Dict[str, str]
    runtime: Optional[RuntimeVersion] = None

    def environment(self, base: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        merged = dict(os.environ if base is None else base)
        merged.update(self.env)
        return merged


@dataclass(frozen=True)
class Proton:
    """Everything needed to start one program under one Proton install."""

    version: Version
    path: Path
    program: Path
    args: Tuple[str, ...] = ()
    options: FrozenSet[RuntimeOption] = field(default_factory=frozenset)
    compat: Path = Path(".")
    steam: Path = Path(".")
    runtime: Optional[RuntimeVersion] = None
    common: Path = Path(".")

    @classmethod
    def new(
        cls,
        version: Version,
        path: Path,
        program: Path,
        args: Iterable[str] = (),
        options: Iterable[RuntimeOption] = (),
        compat: Path = Path("."),
        steam: Path = Path("."),
        runtime: Optional[RuntimeVersion] = None,
        common: Path = Path("."),
    ) -> "Proton":
        return cls(
            version=version,
            path=Path(path),
            program=Path(program),
            args=tuple(args),
            options=frozenset(options),
            compat=Path(compat),
            steam=Path(steam),
            runtime=runtime,
            common=Path(common),
        )

    @property
    def executable(self) -> Path:
        return self.path / PROTON_EXECUTABLE

    @property
    def compat_dir(self) -> Path:
        return self.compat / f"Proton {self.version}"

    def option_env(self) -> List[Tuple[str, str]]:
        return option_environment(self.options)

    def environment(self, compat_dir: Path) -> Dict[str, str]:
        env = {
            COMPAT_DATA_VAR: str(compat_dir),
            CLIENT_INSTALL_VAR: str(self.steam),
        }
        env.update(self.option_env())
        return env

    def prepare(self) -> Path:
        compat_dir = self.compat_dir
        if not compat_dir.exists():
            try:
                compat_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ProtonCallError(
                    ErrorKind.PROTON_DIR, f"failed to create Proton directory: {exc}"
                ) from exc
        if not self.executable.exists():
            raise ProtonCallError(ErrorKind.PROTON_MISSING, str(self.version))
        if not self.program.exists():
            raise ProtonCallError(ErrorKind.PROGRAM_MISSING, str(self.program))
        return compat_dir

    def plan(self) -> LaunchPlan:
        compat_dir = self.prepare()
        env = self.environment(compat_dir)
        if self.runtime is None:
            argv = [str(self.executable), "run", str(self.program), *self.args]
            return LaunchPlan(argv=argv, env=env)

        launcher = self.runtime.locate(self.common)
        argv = [str(launcher), str(self.executable), "runinprefix", str(self.program), *self.args]
        return LaunchPlan(argv=argv, env=env, runtime=self.runtime)

    def run(self) -> int:
        plan = self.plan()
        if plan.runtime is None:
            logger.info(
                "Running Proton %s for %s with: %s", self.version, self.program, self.option_env()
            )
        else:
            logger.info(
                "Running Proton %s in %s for %s with: %s",
                self.version,
                plan.runtime,
                self.program,
                self.option_env(),
            )
        return execute(plan, context=self)


def execute(plan: LaunchPlan, context: Optional[Proton] = None) -> int:
    """Spawn ``plan`` and block until it exits; returns the raw return code."""
    logger.debug("argv=%s env=%s", plan.argv, plan.env)
    try:
        proc = subprocess.Popen(plan.argv, env=plan.environment())
    except OSError as exc:
        if plan.runtime is not None:
            raise ProtonCallError(ErrorKind.PROTON_EXIT, str(exc)) from exc
        raise ProtonCallError(ErrorKind.PROTON_SPAWN, f"{exc}\nDebug:\n{context!r}") from exc

    try:
        return proc.wait()
    except OSError as exc:
        raise ProtonCallError(ErrorKind.PROTON_WAIT, f"'{proc.pid}': {exc}") from exc
