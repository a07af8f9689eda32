"""JSON-file collections for users, projects and assignments, with file locking."""
from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from campushub.log import get_logger

log = get_logger(__name__)


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


class JsonCollection:
    """A list of JSON objects stored in one file, keyed by their ``id``.

    A missing or corrupt file reads as an empty collection. Writes go through a
    sibling ``.lock`` file and replace the data file atomically.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    def list(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                _lock(f, exclusive=False)
                try:
                    data = json.load(f)
                finally:
                    _unlock(f)
        except (OSError, ValueError) as exc:
            log.warning("Could not read %s (%s) — treating as empty", self.path.name, exc)
            return []
        if not isinstance(data, list):
            log.warning("%s does not hold a JSON list — treating as empty", self.path.name)
            return []
        return data

    def find(self, record_id: str) -> dict[str, Any] | None:
        for r in self.list():
            if isinstance(r, dict) and str(r.get("id")) == str(record_id):
                return r
        return None

    def append(self, *records: dict[str, Any]) -> None:
        if not records:
            return
        with self._locked():
            rows = self.list()
            rows.extend(records)
            self._write(rows)
        log.debug("Appended %d record(s) to %s", len(records), self.path.name)

    def remove_by_id(self, record_id: str) -> dict[str, Any] | None:
        """Remove and return the record with ``record_id``; None when absent."""
        with self._locked():
            rows = self.list()
            for idx, r in enumerate(rows):
                if isinstance(r, dict) and str(r.get("id")) == str(record_id):
                    removed = rows.pop(idx)
                    self._write(rows)
                    log.debug("Removed %s from %s", record_id, self.path.name)
                    return removed
        return None

    def replace_all(self, records: list[dict[str, Any]]) -> None:
        with self._locked():
            self._write(list(records))

    def _locked(self):
        return _FileLock(self._lock_path)

    def _write(self, rows: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class _FileLock:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._f = None

    def __enter__(self) -> "_FileLock":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._f = open(self.path, "a")
        _lock(self._f)
        return self

    def __exit__(self, *exc) -> None:
        if self._f is not None:
            _unlock(self._f)
            self._f.close()
            self._f = None
