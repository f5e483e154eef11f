from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ErrorKind, ProtonCallError
from .runtime import RuntimeVersion
from .version import Version


@dataclass
class Config:
    config_path: Path
    data: Path
    steam: Path
    common: Path
    cache: Path | None
    default_version: Version
    default_runtime: RuntimeVersion | None


DEFAULT_CONFIG = {
    "data": "~/.local/share/proton",
    "steam": "~/.steam/steam",
    "common": "~/.steam/steam/steamapps/common",
    "default_version": str(Version.default()),
}


def _home() -> Path:
    home = os.environ.get("HOME")
    if not home:
        raise ProtonCallError(ErrorKind.ENVIRONMENT, "$HOME does not exist")
    return Path(home)


def cache_location() -> Path:
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg) / "proton" / "index"
    return _home() / ".cache" / "proton" / "index"


def default_config_path() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "proton" / "config.yaml"
    return _home() / ".config" / "proton" / "config.yaml"


def load_config(config_path: Path | None = None) -> Config:
    if config_path is None:
        config_path = default_config_path()

    if config_path.exists():
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    else:
        data = DEFAULT_CONFIG
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config format: {config_path}")

    base_dir = config_path.parent

    def _p(value: Any) -> Path:
        path = Path(str(value)).expanduser()
        if not path.is_absolute():
            path = base_dir / path
        return path

    steam = _p(data.get("steam", DEFAULT_CONFIG["steam"]))
    common = _p(data["common"]) if data.get("common") else steam / "steamapps" / "common"
    cache = _p(data["cache"]) if data.get("cache") else None
    runtime = data.get("default_runtime")

    return Config(
        config_path=config_path,
        data=_p(data.get("data", DEFAULT_CONFIG["data"])),
        steam=steam,
        common=common,
        cache=cache,
        default_version=Version.parse(str(data.get("default_version", DEFAULT_CONFIG["default_version"]))),
        default_runtime=RuntimeVersion.parse(str(runtime)) if runtime else None,
    )


def write_default_config(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False), encoding="utf-8")


def config_as_dict(config: Config) -> Dict[str, Any]:
    return {
        "data": str(config.data),
        "steam": str(config.steam),
        "common": str(config.common),
        "cache": str(config.cache) if config.cache else None,
        "default_version": str(config.default_version),
        "default_runtime": config.default_runtime.value if config.default_runtime else None,
    }
