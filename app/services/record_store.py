"""File-backed record store: one JSON file per record, keyed by username."""

import hashlib
import json
import logging
import os
import tempfile
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Generic, TypeVar
from urllib.parse import quote

from pydantic import ValidationError

from app.models import Account, BotProfile, Record
from app.services.id_allocator import IdAllocator
from app.services.record_merge import merge_record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

RECORD_SUFFIX = ".json"
# Keeps "<key>.json" well under the common 255-byte file name limit.
RECORD_KEY_MAX_LEN = 200
_DIGEST_LEN = 64


class RecordStoreError(Exception):
    """Base for store failures reported to the caller."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class ConflictError(RecordStoreError):
    """Raised when a create or rename targets a username that already has a record."""


class StorageError(RecordStoreError):
    """Raised when a record file cannot be written or removed."""


def record_key(username: str) -> str:
    """
    File key for a username: percent-encoding with no safe characters.

    ``/``, ``\\``, ``%``, spaces and other path-unsafe characters become
    ``%XX``; letters, digits and ``_.-~`` are kept. Case-sensitive.

    Keys longer than RECORD_KEY_MAX_LEN are cut to a prefix (never inside a
    ``%XX`` escape) followed by ``~`` and the sha256 of the username. Such keys
    are not reversible; the username is always read from the file itself.
    """
    key = quote(username, safe="")
    if len(key) <= RECORD_KEY_MAX_LEN:
        return key
    prefix = key[: RECORD_KEY_MAX_LEN - _DIGEST_LEN - 1]
    cut = prefix.rfind("%", len(prefix) - 2)
    if cut != -1:
        prefix = prefix[:cut]
    digest = hashlib.sha256(username.encode("utf-8")).hexdigest()
    return f"{prefix}~{digest}"


def _same_file(a: Path, b: Path) -> bool:
    try:
        return a.samefile(b)
    except OSError:
        return False


class JsonRecordStore(Generic[R]):
    """
    CRUD over one record kind stored as ``<root>/<kind>/<key>.json``.

    Reads never raise for unreadable files: a single-record read returns None
    and a scan skips the file with a warning. Writes go to a temporary file in
    the same directory and are moved into place, and raise StorageError on
    failure. Mutations are serialized by an in-process lock; nothing guards
    against a second writer process.

    An ``id -> username`` index is built by the startup scan and kept current
    on every write. A miss or stale entry falls back to a full rescan.
    """

    record_type: ClassVar[type[Record]]
    kind: ClassVar[str]

    def __init__(self, root: str | Path) -> None:
        self.directory = Path(root) / self.kind
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Cannot create {self.kind} directory {self.directory}.", cause=e
            ) from e
        self._lock = threading.RLock()
        self._index: dict[int, str] = {}
        self._ids = IdAllocator()
        records = self._rebuild_index()
        self._ids = IdAllocator.from_existing(r.id for r in records)
        logger.info(
            "Record store opened",
            extra={
                "kind": self.kind,
                "record_count": len(records),
                "next_id": self._ids.next_id,
            },
        )

    # -- file helpers --

    def path_for(self, username: str) -> Path:
        return self.directory / f"{record_key(username)}{RECORD_SUFFIX}"

    def _read(self, path: Path) -> R | None:
        """Load and default-fill one record file; None if missing or unreadable."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(
                "Skipping unreadable record file",
                extra={"kind": self.kind, "path": str(path), "error": str(e)[:200]},
            )
            return None
        if not isinstance(data, dict):
            logger.warning(
                "Skipping record file that is not a JSON object",
                extra={"kind": self.kind, "path": str(path)},
            )
            return None
        try:
            return self.record_type.model_validate(merge_record(self.record_type, data))
        except ValidationError as e:
            logger.warning(
                "Skipping record file with invalid fields",
                extra={"kind": self.kind, "path": str(path), "error_count": e.error_count()},
            )
            return None

    def _scan(self) -> list[R]:
        try:
            paths = sorted(self.directory.glob(f"*{RECORD_SUFFIX}"))
        except OSError as e:
            logger.warning(
                "Cannot list record directory",
                extra={"kind": self.kind, "path": str(self.directory), "error": str(e)[:200]},
            )
            return []
        records = []
        for path in paths:
            record = self._read(path)
            if record is not None:
                records.append(record)
        return records

    def _rebuild_index(self) -> list[R]:
        records = self._scan()
        with self._lock:
            self._index = {r.id: r.username for r in records}
            for r in records:
                self._ids.observe(r.id)
        return records

    def _exists(self, path: Path) -> bool:
        try:
            return path.exists()
        except OSError as e:
            raise StorageError(f"Cannot access {self.kind} record file.", cause=e) from e

    def _write(self, path: Path, record: R) -> None:
        payload = json.dumps(record.to_wire(), indent=2, ensure_ascii=False)
        tmp_path: str | None = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=".", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise StorageError(
                f"Failed to write {self.kind} record '{record.username}'.", cause=e
            ) from e

    # -- reads --

    def get_by_id(self, record_id: int) -> R | None:
        """Return the record with this id, or None."""
        username = self._index.get(record_id)
        if username is not None:
            record = self._read(self.path_for(username))
            if record is not None and record.id == record_id:
                return record
        for record in self._rebuild_index():
            if record.id == record_id:
                return record
        return None

    def get_by_username(self, username: str) -> R | None:
        """Direct file lookup by username; None if absent or unreadable."""
        if not username:
            return None
        record = self._read(self.path_for(username))
        if record is None or record.username != username:
            return None
        self._index[record.id] = record.username
        return record

    def get_all(self) -> list[R]:
        """Every readable record, defaults filled. Order is not guaranteed."""
        return self._rebuild_index()

    # -- writes --

    def create(self, data: Mapping[str, Any]) -> R:
        """
        Allocate an id, default-fill, and persist a new record.

        Raises ConflictError if the username already has a record, pydantic
        ValidationError for malformed data, StorageError if the write fails.
        """
        with self._lock:
            merged = merge_record(self.record_type, data)
            merged["id"] = self._ids.next_id
            record = self.record_type.model_validate(merged)
            path = self.path_for(record.username)
            if self._exists(path):
                raise ConflictError(
                    f"A {self.kind} record for '{record.username}' already exists."
                )
            record = record.model_copy(update={"id": self._ids.allocate()})
            self._write(path, record)
            self._index[record.id] = record.username
        logger.info(
            "Record created",
            extra={"kind": self.kind, "record_id": record.id},
        )
        return record

    def update(self, record_id: int, partial: Mapping[str, Any]) -> R | None:
        """
        Merge ``partial`` over the stored record; None if the id is unknown.

        A username change writes the new file before removing the old one. If
        the old file cannot be removed, the new file is rolled back and
        StorageError is raised, so a record never lives under two keys.
        """
        with self._lock:
            existing = self.get_by_id(record_id)
            if existing is None:
                return None
            merged = merge_record(self.record_type, partial, base=existing.to_wire())
            merged["id"] = existing.id
            updated = self.record_type.model_validate(merged)

            old_path = self.path_for(existing.username)
            new_path = self.path_for(updated.username)
            if new_path == old_path:
                self._write(old_path, updated)
            elif self._exists(new_path):
                if not _same_file(old_path, new_path):
                    raise ConflictError(
                        f"A {self.kind} record for '{updated.username}' already exists."
                    )
                # Case-only rename on a case-insensitive filesystem.
                self._write(new_path, updated)
            else:
                self._write(new_path, updated)
                try:
                    old_path.unlink(missing_ok=True)
                except OSError as e:
                    try:
                        new_path.unlink(missing_ok=True)
                    except OSError:
                        logger.error(
                            "Rename rollback failed; record exists under two keys",
                            extra={"kind": self.kind, "record_id": record_id},
                        )
                    raise StorageError(
                        f"Failed to remove old {self.kind} record '{existing.username}'.",
                        cause=e,
                    ) from e
            self._index[updated.id] = updated.username
        logger.info(
            "Record updated",
            extra={
                "kind": self.kind,
                "record_id": record_id,
                "renamed": existing.username != updated.username,
            },
        )
        return updated

    def delete(self, record_id: int) -> bool:
        """Remove the record's file. False if there was no such record."""
        with self._lock:
            existing = self.get_by_id(record_id)
            if existing is None:
                return False
            try:
                self.path_for(existing.username).unlink()
            except FileNotFoundError:
                self._index.pop(record_id, None)
                return False
            except OSError as e:
                raise StorageError(
                    f"Failed to delete {self.kind} record '{existing.username}'.", cause=e
                ) from e
            self._index.pop(record_id, None)
        logger.info("Record deleted", extra={"kind": self.kind, "record_id": record_id})
        return True

    def is_writable(self) -> bool:
        """True if the kind directory exists and accepts writes."""
        return self.directory.is_dir() and os.access(self.directory, os.W_OK)


class AccountStore(JsonRecordStore[Account]):
    record_type = Account
    kind = "accounts"

    def get_admins(self) -> list[Account]:
        return [a for a in self.get_all() if a.is_admin]


class BotProfileStore(JsonRecordStore[BotProfile]):
    record_type = BotProfile
    kind = "bot_profiles"


@dataclass
class RecordStore:
    """Both record kinds under one data directory. Built once per process."""

    root: Path
    accounts: AccountStore
    bot_profiles: BotProfileStore

    def is_available(self) -> bool:
        return self.accounts.is_writable() and self.bot_profiles.is_writable()


def open_record_store(data_dir: str | Path) -> RecordStore:
    """Open (creating directories as needed) the store rooted at ``data_dir``."""
    root = Path(data_dir)
    return RecordStore(
        root=root,
        accounts=AccountStore(root),
        bot_profiles=BotProfileStore(root),
    )
