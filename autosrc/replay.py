"""Batch replay — applies stored command files without calling any generator.

Each input file is a JSON array of ``update``, ``continue`` and ``finish``
commands. There is no manifest: updates are written straight to disk. A bad
file or command is reported and skipped, never fatal.
"""

import json
from pathlib import Path

from autosrc.commands import REPLAY_KINDS, Continue, Finish, Update, parse_command
from autosrc.errors import ValidationError
from autosrc.interpreter import resolve_target, write_file


def _replay_command(raw, root: Path) -> None:
    command = parse_command(raw, REPLAY_KINDS)

    if isinstance(command, Update):
        print(f"\nProcessing file: {command.path}")
        print(f"Reason: {command.why}")
        if not isinstance(command.content, str):
            raise ValidationError(f"Content for {command.path} must be a string.")
        write_file(resolve_target(root, command.path), command.content)
        print(f"Successfully wrote: {command.path}")
    elif isinstance(command, Continue):
        if command.paths:
            print("\nPending files to be processed:")
            for path in command.paths:
                print(f"- {path}")
    elif isinstance(command, Finish):
        print("\nFinal Report:")
        print(command.report)
        print("\nProcessing complete!")
    else:
        raise TypeError(f"Unhandled command type: {type(command).__name__}")


def process_command_file(file_path: str | Path, root: Path | None = None) -> int:
    """Replay one command file. Returns the number of commands that failed.

    A file that cannot be read or decoded counts as one failure.
    """
    root = Path(root) if root is not None else Path.cwd()
    print(f"Reading command file: {file_path}...")

    # ValueError covers undecodable bytes, bad JSON and a NUL in the file name
    try:
        commands = json.loads(Path(file_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        print(f"Error reading JSON from {file_path}: {exc}")
        return 1
    if not isinstance(commands, list):
        print(f"Error parsing JSON from {file_path}: Commands must be an array")
        return 1

    failures = 0
    for raw in commands:
        try:
            _replay_command(raw, root)
        except (ValidationError, OSError) as exc:
            print(f"Error applying command in {file_path}: {exc}")
            failures += 1
    return failures


def replay_files(file_paths: list[str], root: Path | None = None) -> int:
    """Replay every file in order. Returns the total failure count."""
    print(f"Processing {len(file_paths)} command file(s)...\n")
    return sum(process_command_file(path, root) for path in file_paths)
