from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, Tuple

from .errors import ErrorKind, ProtonCallError


RUNTIME_LAUNCHER = "run"


class RuntimeVersion(Enum):
    DEFAULT = "default"
    SNIPER = "sniper"
    SOLDIER = "soldier"
    BATTLEEYE = "battleeye"
    EASYANTICHEAT = "easyanticheat"

    @classmethod
    def parse(cls, text: str) -> "RuntimeVersion":
        # Unknown names fall back to the default runtime instead of failing.
        return _BY_ALIAS.get(text.strip().lower(), cls.DEFAULT)

    @property
    def install_name(self) -> str:
        return _RUNTIMES[self][1]

    @property
    def aliases(self) -> Tuple[str, ...]:
        return _RUNTIMES[self][0]

    def launcher_path(self, common: Path) -> Path:
        return Path(common) / self.install_name / RUNTIME_LAUNCHER

    def locate(self, common: Path) -> Path:
        path = self.launcher_path(common)
        if not path.exists():
            raise ProtonCallError(ErrorKind.RUNTIME_MISSING, self.install_name)
        return path

    def __str__(self) -> str:
        return self.install_name


_RUNTIMES: Dict[RuntimeVersion, Tuple[Tuple[str, ...], str]] = {
    RuntimeVersion.DEFAULT: (("default",), "SteamLinuxRuntime"),
    RuntimeVersion.SNIPER: (("sniper",), "SteamLinuxRuntime_sniper"),
    RuntimeVersion.SOLDIER: (("soldier",), "SteamLinuxRuntime_soldier"),
    RuntimeVersion.BATTLEEYE: (("battleeye",), "Proton BattlEye Runtime"),
    RuntimeVersion.EASYANTICHEAT: (("eac", "easyanticheat"), "Proton EasyAntiCheat Runtime"),
}

_BY_ALIAS: Dict[str, RuntimeVersion] = {
    alias: runtime for runtime, (aliases, _) in _RUNTIMES.items() for alias in aliases
}
