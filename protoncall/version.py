from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from pathlib import PurePath

from .errors import ErrorKind, ProtonCallError


class VersionKind(IntEnum):
    # Declaration order is the sort order: Mainline < Experimental < Custom.
    MAINLINE = 0
    EXPERIMENTAL = 1
    CUSTOM = 2


_NUMBER_RE = re.compile(r"[0-9]+")
_U8_MAX = 255


def _parse_u8(token: str, text: str) -> int:
    if not _NUMBER_RE.fullmatch(token):
        raise ProtonCallError(ErrorKind.VERSION_PARSE, f"'{text}'")
    value = int(token)
    if value > _U8_MAX:
        raise ProtonCallError(ErrorKind.VERSION_PARSE, f"'{text}': {value} is out of range")
    return value


@dataclass(frozen=True, order=True)
class Version:
    """A Proton release. Only the discriminant and, for mainline, the numbers matter."""

    kind: VersionKind
    major: int = 0
    minor: int = 0

    @classmethod
    def mainline(cls, major: int, minor: int) -> "Version":
        return cls(VersionKind.MAINLINE, major, minor)

    @classmethod
    def experimental(cls) -> "Version":
        return cls(VersionKind.EXPERIMENTAL)

    @classmethod
    def custom(cls) -> "Version":
        return cls(VersionKind.CUSTOM)

    @classmethod
    def default(cls) -> "Version":
        return cls.mainline(6, 3)

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse user input: ``experimental`` (any case) or ``major.minor``.

        Never returns a custom version; those only come from directory names.
        """
        if text.lower() == "experimental":
            return cls.experimental()
        parts = text.split(".")
        if len(parts) != 2:
            raise ProtonCallError(ErrorKind.VERSION_PARSE, f"'{text}'")
        return cls.mainline(_parse_u8(parts[0], text), _parse_u8(parts[1], text))

    @classmethod
    def from_directory_name(cls, name: str | PurePath) -> "Version":
        """Infer the version from the last space separated token of a directory name.

        Unparseable names are custom versions, so scanning never fails on them.
        """
        base = PurePath(name).name or "custom"
        tokens = base.split()
        token = tokens[-1] if tokens else "custom"
        try:
            return cls.parse(token)
        except ProtonCallError:
            return cls.custom()

    def __str__(self) -> str:
        if self.kind is VersionKind.MAINLINE:
            return f"{self.major}.{self.minor}"
        if self.kind is VersionKind.EXPERIMENTAL:
            return "Experimental"
        return "Custom"
