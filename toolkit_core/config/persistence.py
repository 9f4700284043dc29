"""Atomic JSON document storage shared by settings and viewer persistence."""

from __future__ import annotations

import fcntl
import glob
import hashlib
import json
import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any

from ..constants import CONFIG_BACKUP_RETENTION
from ..errors.internal import PersistenceError


class JsonDocumentStore:
    """Reads and atomically writes a single JSON document.

    Writes go through a lock file, a temp file in the same directory, fsync
    and rename, so readers never observe a half written document. Saves whose
    content matches the last written checksum are skipped.
    """

    def __init__(self, path: str | os.PathLike[str], backups: int = CONFIG_BACKUP_RETENTION):
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = str(path)
        self.backups = backups
        self._last_checksum: str | None = None

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def load(self) -> Any | None:
        """Return the decoded document, or None when the file is missing.

        Raises:
            PersistenceError: The file exists but cannot be read or decoded.
        """
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise PersistenceError(
                f"Cannot read {self.path}: {type(e).__name__}", data={"path": self.path}
            ) from e
        self._last_checksum = self._compute_checksum(data)
        return data

    @staticmethod
    def _compute_checksum(data: Any) -> str:
        payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(payload.encode()).hexdigest()

    def save(self, data: Any) -> bool:
        """Write ``data`` atomically.

        Returns:
            True if the file was written, False if skipped because nothing changed.

        Raises:
            PersistenceError: The write failed; the previous file is left intact.
        """
        checksum = self._compute_checksum(data)
        if self._last_checksum == checksum and self.exists():
            logging.debug(f"💾 Skipped save (checksum match) path={self.path}")
            return False
        self._prepare_dir()
        try:
            self._atomic_write(data)
        except (OSError, ValueError, TypeError) as e:
            raise PersistenceError(
                f"Cannot write {self.path}: {type(e).__name__}", data={"path": self.path}
            ) from e
        self._last_checksum = checksum
        return True

    def _prepare_dir(self) -> None:
        directory = os.path.dirname(self.path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, mode=0o755, exist_ok=True)

    def _atomic_write(self, data: Any) -> None:
        target = Path(self.path)
        lock_path = target.with_name(f"{target.name}.lock")
        temp_path: str | None = None
        try:
            with open(lock_path, "w", encoding="utf-8") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                self._create_backup(target)
                with tempfile.NamedTemporaryFile(
                    mode="w",
                    dir=target.parent,
                    prefix=f".{target.name}.",
                    suffix=".tmp",
                    delete=False,
                    encoding="utf-8",
                ) as tmp:
                    temp_path = tmp.name
                    json.dump(data, tmp, indent=2, default=str)
                    tmp.flush()
                    os.fsync(tmp.fileno())
                os.chmod(temp_path, 0o600)
                os.replace(temp_path, self.path)
                temp_path = None
                logging.debug(f"💾 Saved atomically path={self.path}")
        except (OSError, ValueError, TypeError) as e:
            logging.error(f"💥 Atomic save failed path={self.path} error={type(e).__name__}")
            raise
        finally:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            try:
                os.unlink(lock_path)
            except OSError:
                pass

    def _create_backup(self, target: Path) -> None:
        """Keep the newest ``self.backups`` copies of the previous file."""
        if self.backups <= 0 or not target.is_file():
            return
        try:
            backup_name = target.parent / f"{target.name}.bak.{time.time_ns()}"
            shutil.copy2(target, backup_name)
            backups = sorted(
                glob.glob(str(target.parent / f"{glob.escape(target.name)}.bak.*")),
                reverse=True,
            )
            for old in backups[self.backups :]:
                try:
                    os.unlink(old)
                except OSError:
                    pass
        except OSError as e:
            logging.debug(f"🗄️ Backup failed: {e}")
