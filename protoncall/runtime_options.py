from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Tuple

from .errors import ErrorKind, ProtonCallError


FLAG_VALUE = "1"


class _OptionDef(NamedTuple):
    aliases: Tuple[str, ...]
    env_var: str
    help: str


class RuntimeOption(Enum):
    """Proton runtime config toggles, each exported as one environment variable."""

    LOG = "log"
    WINED3D = "wined3d"
    NOD3D11 = "nod3d11"
    NOD3D10 = "nod3d10"
    NOESYNC = "noesync"
    NOFSYNC = "nofsync"
    ENABLENVAPI = "enablenvapi"

    @classmethod
    def parse(cls, text: str) -> "RuntimeOption":
        try:
            return _BY_ALIAS[text]
        except KeyError:
            raise ProtonCallError(
                ErrorKind.PARSE_RUNTIME_OPT, f"{text} is not a runtime option"
            ) from None

    @property
    def env_var_name(self) -> str:
        return _OPTIONS[self].env_var

    @property
    def help(self) -> str:
        return _OPTIONS[self].help

    @property
    def aliases(self) -> Tuple[str, ...]:
        return _OPTIONS[self].aliases

    def __str__(self) -> str:
        return self.env_var_name


_OPTIONS: Dict[RuntimeOption, _OptionDef] = {
    RuntimeOption.LOG: _OptionDef(
        ("log",), "PROTON_LOG", "Dump a debug log"
    ),
    RuntimeOption.WINED3D: _OptionDef(
        ("wined3d",), "PROTON_USE_WINED3D", "Use OpenGL-based wined3d instead of DXVK"
    ),
    RuntimeOption.NOD3D11: _OptionDef(
        ("nod3d11",), "PROTON_NO_D3D11", "Disable d3d11.dll"
    ),
    RuntimeOption.NOD3D10: _OptionDef(
        ("nod3d10",), "PROTON_NO_D3D10", "Disable d3d10.dll and dxgi.dll"
    ),
    RuntimeOption.NOESYNC: _OptionDef(
        ("noesync",), "PROTON_NO_ESYNC", "Do not use eventfd-based synchronization"
    ),
    RuntimeOption.NOFSYNC: _OptionDef(
        ("nofsync",), "PROTON_NO_FSYNC", "Do not use futex-based synchronization"
    ),
    RuntimeOption.ENABLENVAPI: _OptionDef(
        ("enablenvapi", "nvapi"), "PROTON_ENABLE_NVAPI", "Enable NVIDIA's NVAPI library"
    ),
}

_BY_ALIAS: Dict[str, RuntimeOption] = {
    alias: option for option, entry in _OPTIONS.items() for alias in entry.aliases
}


def parse_options(values: Iterable[str]) -> List[RuntimeOption]:
    return [RuntimeOption.parse(v) for v in values]


def option_environment(options: Iterable[RuntimeOption]) -> List[Tuple[str, str]]:
    selected = set(options)
    return [(opt.env_var_name, FLAG_VALUE) for opt in RuntimeOption if opt in selected]
