from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from .config import cache_location
from .errors import ErrorKind, ProtonCallError
from .utils import ensure_dir
from .version import Version, VersionKind

logger = logging.getLogger(__name__)

CACHE_FORMAT = 1


@dataclass
class SaveResult:
    ok: bool
    error: ProtonCallError | None = None


def scan(root: Path) -> Dict[Version, Path]:
    """Map every subdirectory of ``root`` to the version its name ends with.

    Entries that fail to stat are skipped with a warning; if the listing itself
    breaks off, the entries found so far are kept. When two directories resolve
    to the same version the one enumerated last wins.
    """
    root = Path(root)
    found: Dict[Version, Path] = {}
    try:
        entries = os.scandir(root)
    except OSError as exc:
        raise ProtonCallError(ErrorKind.INDEX_READ_DIR, f"can not read common dir {root}: {exc}") from exc

    with entries:
        while True:
            try:
                entry = next(entries)
            except StopIteration:
                break
            except OSError as exc:
                logger.warning("failed indexing %s, stopping scan: %s", root, exc)
                break
            try:
                is_dir = entry.is_dir()
            except OSError as exc:
                logger.warning("failed indexing %s: %s", entry.path, exc)
                continue
            if not is_dir:
                continue
            found[Version.from_directory_name(entry.name)] = Path(entry.path).absolute()
    return found


def _resolve_cache(cache_path: Optional[Path]) -> Path:
    return Path(cache_path) if cache_path is not None else cache_location()


def _encode(index: "Index") -> bytes:
    payload = {
        "format": CACHE_FORMAT,
        "dir": str(index.dir),
        "inner": [[int(v.kind), v.major, v.minor, str(p)] for v, p in index.items()],
    }
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def _decode(data: bytes) -> "Index":
    try:
        payload = json.loads(data.decode("utf-8"))
        if not isinstance(payload, dict) or payload.get("format") != CACHE_FORMAT:
            raise ValueError("unknown cache format")
        inner: Dict[Version, Path] = {}
        for kind, major, minor, path in payload["inner"]:
            inner[Version(VersionKind(kind), int(major), int(minor))] = Path(path)
        return Index(dir=Path(payload["dir"]), inner=inner)
    except (ValueError, TypeError, KeyError) as exc:
        raise ProtonCallError(ErrorKind.INDEX_CACHE, f"can't deserialize: {exc}") from exc


@dataclass
class Index:
    """Installed Proton versions found under one directory."""

    dir: Path
    inner: Dict[Version, Path] = field(default_factory=dict)

    scan = staticmethod(scan)

    @classmethod
    def build(cls, root: Path, cache_path: Optional[Path] = None) -> "Index":
        """Restore the index from the cache, or scan ``root`` and cache the result.

        ``cache_path`` defaults to ``cache_location()``. Only a failing scan is
        an error; every cache problem, including an unresolvable cache
        location, ends in a re-scan.
        """
        root = Path(root).absolute()
        try:
            cached = cls.load(cache_path)
            if cached.dir != root:
                raise ProtonCallError(
                    ErrorKind.INDEX_CACHE, f"cache indexes {cached.dir}, not {root}"
                )
            logger.debug("loaded index of %s", root)
            return cached
        except ProtonCallError as exc:
            logger.warning("%s\nreindexing...", exc)

        idx = cls(dir=root, inner=scan(root))
        idx.save(cache_path)
        return idx

    @classmethod
    def load(cls, cache_path: Optional[Path] = None) -> "Index":
        path = _resolve_cache(cache_path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ProtonCallError(ErrorKind.INDEX_CACHE, str(exc)) from exc
        return _decode(data)

    @classmethod
    def try_load(cls, cache_path: Optional[Path] = None) -> Optional["Index"]:
        try:
            return cls.load(cache_path)
        except ProtonCallError:
            return None

    def save(self, cache_path: Optional[Path] = None) -> SaveResult:
        try:
            path = _resolve_cache(cache_path)
            ensure_dir(path.parent)
            path.write_bytes(_encode(self))
        except ProtonCallError as err:
            logger.warning("index not cached: %s", err)
            return SaveResult(ok=False, error=err)
        except OSError as exc:
            err = ProtonCallError(ErrorKind.INDEX_CACHE, str(exc))
            logger.warning("%s", err)
            return SaveResult(ok=False, error=err)
        return SaveResult(ok=True)

    def reindex(self, cache_path: Optional[Path] = None) -> SaveResult:
        self.inner = scan(self.dir)
        return self.save(cache_path)

    def get(self, version: Version) -> Optional[Path]:
        return self.inner.get(version)

    def items(self) -> List[Tuple[Version, Path]]:
        return sorted(self.inner.items())

    def is_empty(self) -> bool:
        return not self.inner

    def __len__(self) -> int:
        return len(self.inner)

    def __iter__(self) -> Iterator[Version]:
        return iter(sorted(self.inner))

    def __contains__(self, version: object) -> bool:
        return version in self.inner

    def __str__(self) -> str:
        lines = [f"Indexed Directory: {self.dir}", "", f"Indexed {len(self)} Proton Versions:"]
        for version, path in self.items():
            lines.append(f"Proton {version}: {path}")
        return "\n".join(lines)
