# civic_node/civic_runtime/atomic_store.py
"""
Atomic snapshot persistence for the governance state.

- Atomic write: temp file in the same directory, fsync, os.replace, dir fsync
- Rolling backups (.bak1, .bak2, ...) rotated before each write
- Load fallback: primary -> bak1 -> bak2 -> ...
- Journal marker (.journal) present only while a save is in flight

Snapshots are canonical JSON (sorted keys, compact separators).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]
PathLike = Union[str, Path]


def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def _fsync_dir(dir_path: Path) -> None:
    try:
        fd = os.open(str(dir_path), os.O_DIRECTORY)
    except (AttributeError, OSError):
        # O_DIRECTORY is not available everywhere (Windows).
        return
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _json_dumps(obj: JsonDict) -> bytes:
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":")).encode("utf-8")


def atomic_write_bytes(path: Path, data: bytes) -> None:
    _ensure_dir(path.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        os.replace(str(tmp_path), str(path))
        _fsync_dir(path.parent)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def read_json(path: Path) -> Optional[JsonDict]:
    if not path.exists():
        return None
    try:
        obj = json.loads(path.read_bytes().decode("utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        log.warning("unreadable snapshot %s: %s", path, e)
        return None
    return obj if isinstance(obj, dict) else None


def _rotate_backups(path: Path, keep: int) -> None:
    if keep <= 0:
        return

    # move .bak(N-1) -> .bakN
    for i in range(keep, 1, -1):
        src = path.with_suffix(path.suffix + f".bak{i-1}")
        dst = path.with_suffix(path.suffix + f".bak{i}")
        if src.exists():
            os.replace(str(src), str(dst))

    # move primary -> .bak1
    if path.exists():
        os.replace(str(path), str(path.with_suffix(path.suffix + ".bak1")))


class AtomicStateStore:
    def __init__(self, data_dir: PathLike = ".", *, filename: str = "civic_state.json", keep_backups: int = 2):
        self.data_dir = Path(data_dir)
        self.filename = filename
        self.keep_backups = int(keep_backups)

    @property
    def path(self) -> Path:
        return self.data_dir / self.filename

    @property
    def journal_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".journal")

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[JsonDict]:
        # A leftover journal means the last save crashed mid-flight; the
        # primary may be missing, so backups are tried in order.
        if self.journal_path.exists():
            log.warning("found save journal %s, last save may be incomplete", self.journal_path)

        paths = [self.path]
        for i in range(1, max(1, self.keep_backups) + 1):
            paths.append(self.path.with_suffix(self.path.suffix + f".bak{i}"))

        for p in paths:
            obj = read_json(p)
            if obj is not None:
                if p != self.path:
                    log.warning("loaded state from backup %s", p)
                return obj
        return None

    def save(self, state: JsonDict) -> None:
        _ensure_dir(self.data_dir)
        data = _json_dumps(state)

        atomic_write_bytes(self.journal_path, b"1")
        _rotate_backups(self.path, keep=self.keep_backups)
        atomic_write_bytes(self.path, data)

        if self.journal_path.exists():
            self.journal_path.unlink()
