"""Manifest Store — durable record of every tracked file and its generation status.

The manifest lives on disk as ``{"files": [{"path", "description", "status"}]}``.
Every mutation is flushed immediately, so the document always matches the
last fully applied command. Paths are not unique: lookups return the first
match in insertion order.
"""

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Literal

from autosrc.errors import ManifestNotFoundError, ParseError

Status = Literal["pending", "generated", "deleted"]

PENDING: Status = "pending"
GENERATED: Status = "generated"
DELETED: Status = "deleted"
VALID_STATUSES = {PENDING, GENERATED, DELETED}


@dataclass
class ManifestFile:
    path: str
    description: str = ""
    status: Status = PENDING


def _entry_from_dict(raw: dict, index: int) -> ManifestFile:
    if not isinstance(raw, dict):
        raise ParseError(f"Manifest entry {index} is not an object.")
    path = raw.get("path")
    if not isinstance(path, str) or not path:
        raise ParseError(f"Manifest entry {index} missing string 'path'.")
    status = raw.get("status", PENDING)
    if not isinstance(status, str) or status not in VALID_STATUSES:
        raise ParseError(
            f"Manifest entry {index} ({path}) has invalid status '{status}'. "
            f"Must be one of: {sorted(VALID_STATUSES)}"
        )
    description = raw.get("description", "")
    return ManifestFile(path=path, description=str(description), status=status)


class ManifestStore:
    """Ordered manifest entries bound to the JSON document they are flushed to."""

    def __init__(self, path: Path, files: list[ManifestFile] | None = None):
        self.path = Path(path)
        self.files: list[ManifestFile] = files if files is not None else []

    @classmethod
    def load(cls, path: Path) -> "ManifestStore":
        """Read the manifest document.

        Raises ManifestNotFoundError if the file is absent and ParseError if
        it cannot be decoded into manifest entries.
        """
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ManifestNotFoundError(f"No manifest at {path}") from exc
        except UnicodeDecodeError as exc:
            raise ParseError(f"Manifest {path} is not valid UTF-8: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Manifest {path} is not valid JSON: {exc}") from exc

        if not isinstance(data, dict) or not isinstance(data.get("files"), list):
            raise ParseError(f"Manifest {path} must be an object with a 'files' list.")

        files = [_entry_from_dict(entry, i) for i, entry in enumerate(data["files"])]
        return cls(path, files)

    @classmethod
    def from_plan(cls, path: Path, items: list) -> "ManifestStore":
        """Build a new store from a bootstrap plan. Every entry starts pending."""
        if not isinstance(items, list):
            raise ParseError(f"Initial manifest must be a JSON array, got {type(items).__name__}.")
        files = []
        for i, item in enumerate(items):
            if isinstance(item, dict):
                item = {**item, "status": PENDING}
            files.append(_entry_from_dict(item, i))
        return cls(path, files)

    def to_dict(self) -> dict:
        return {"files": [asdict(f) for f in self.files]}

    def save(self) -> None:
        """Write the whole manifest via a temporary sibling and an atomic rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        finally:
            if tmp.exists():
                tmp.unlink()

    def find_by_path(self, path: str) -> ManifestFile | None:
        for entry in self.files:
            if entry.path == path:
                return entry
        return None

    def append(self, entry: ManifestFile) -> None:
        """Add an entry and flush. Duplicate paths are allowed."""
        self.files.append(entry)
        self.save()

    def set_status(self, path: str, status: Status) -> ManifestFile | None:
        """Set the status of the first entry matching path and flush.

        Deleted is terminal: an entry already deleted keeps that status.
        Returns the entry, or None if the path is not tracked.
        """
        entry = self.find_by_path(path)
        if entry is None:
            return None
        if entry.status != DELETED:
            entry.status = status
        self.save()
        return entry

    def pending(self) -> list[ManifestFile]:
        return [f for f in self.files if f.status == PENDING]

    def counts(self) -> dict[str, int]:
        counts = {s: 0 for s in (PENDING, GENERATED, DELETED)}
        for f in self.files:
            counts[f.status] += 1
        return counts
