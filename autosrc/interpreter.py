"""Command Interpreter — applies one batch of commands to the filesystem and the manifest.

Every side effect happens as soon as its command is processed, so a crash
mid-batch leaves files and manifest consistent up to the last applied command.
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path

from autosrc.commands import Add, Command, Continue, Finish, Remove, Update
from autosrc.errors import ValidationError
from autosrc.manifest import DELETED, GENERATED, PENDING, ManifestFile, ManifestStore


@dataclass
class ApplyResult:
    finished: bool = False
    report: str | None = None
    applied: int = 0
    errors: list[ValidationError] = field(default_factory=list)


def resolve_target(root: Path, rel_path: str) -> Path:
    """Resolve a command path against the run root.

    Raises ValidationError for absolute paths, paths that climb out of root,
    and paths the filesystem cannot represent (embedded NUL).
    """
    if "\x00" in rel_path:
        raise ValidationError(f"Path contains a NUL byte: {rel_path!r}")
    candidate = Path(rel_path)
    if candidate.is_absolute():
        raise ValidationError(f"Path must be relative to the project root: {rel_path}")
    root = Path(root).resolve()
    try:
        target = (root / candidate).resolve()
    except ValueError as exc:
        raise ValidationError(f"Invalid path {rel_path!r}: {exc}") from exc
    if target != root and root not in target.parents:
        raise ValidationError(f"Path escapes the project root: {rel_path}")
    return target


def write_file(target: Path, content: str) -> None:
    """Create parent directories and write content verbatim."""
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8", newline="")


def _apply_update(command: Update, store: ManifestStore, root: Path) -> None:
    if not isinstance(command.content, str):
        raise ValidationError(
            f"Unexpected content for {command.path}: expected a string, "
            f"got {type(command.content).__name__}."
        )
    write_file(resolve_target(root, command.path), command.content)
    store.set_status(command.path, GENERATED)


def _apply_remove(command: Remove, store: ManifestStore, root: Path, remove_missing: str) -> None:
    target = resolve_target(root, command.path)
    try:
        target.unlink()
    except FileNotFoundError:
        if remove_missing != "skip":
            raise
        print(f"[autosrc] Warning: {command.path} does not exist, nothing to remove.", file=sys.stderr)
    store.set_status(command.path, DELETED)


def apply_commands(
    commands: list[Command],
    store: ManifestStore,
    root: Path,
    remove_missing: str = "fail",
) -> ApplyResult:
    """Apply commands in order, stopping at the first Finish.

    Validation problems in a single command (non-string content, a path
    outside the root) are logged, collected in the result and skipped.
    Filesystem errors propagate to the caller.

    Args:
        commands: The batch, in generator order.
        store: Manifest to update; flushed after every mutation.
        root: Directory that relative command paths resolve against.
        remove_missing: "fail" to raise when a removed file is absent, "skip" to warn.
    """
    result = ApplyResult()
    print(f"[autosrc] Received {len(commands)} commands")

    for command in commands:
        try:
            if isinstance(command, Add):
                print(f"[autosrc] ADD {command.path}")
                store.append(ManifestFile(command.path, command.description, PENDING))
            elif isinstance(command, Update):
                print(f"[autosrc] UPDATE {command.path}")
                _apply_update(command, store, root)
            elif isinstance(command, Remove):
                print(f"[autosrc] REMOVE {command.path}")
                _apply_remove(command, store, root, remove_missing)
            elif isinstance(command, Finish):
                result.finished = True
                result.report = command.report
                result.applied += 1
                return result
            elif isinstance(command, Continue):
                raise ValidationError("'continue' is only valid in replay files.")
            else:
                raise TypeError(f"Unhandled command type: {type(command).__name__}")
        except ValidationError as exc:
            print(f"[autosrc] Error: {exc}", file=sys.stderr)
            result.errors.append(exc)
            continue
        result.applied += 1

    return result
