from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    ENVIRONMENT = "environment"
    INDEX_CACHE = "index cache"
    INDEX_READ_DIR = "index read dir"
    VERSION_PARSE = "version parse"
    PARSE_RUNTIME_OPT = "runtime option parse"
    PROTON_DIR = "proton dir"
    PROTON_MISSING = "proton missing"
    PROGRAM_MISSING = "program missing"
    RUNTIME_MISSING = "runtime missing"
    PROTON_SPAWN = "proton spawn"
    PROTON_EXIT = "proton exit"
    PROTON_WAIT = "proton wait"


class ProtonCallError(Exception):
    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
