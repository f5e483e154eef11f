from __future__ import annotations

from pathlib import Path
from typing import Iterable


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def parse_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def flatten_lists(values: Iterable[str]) -> list[str]:
    """Accept both repeated options and comma lists: ``-o log -o nvapi,noesync``."""
    items: list[str] = []
    for value in values:
        items.extend(parse_list(value))
    return items
