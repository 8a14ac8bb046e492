"""Command protocol — the tagged union exchanged with the generator and the replay client.

Wire form: each command is a JSON object with exactly one recognised key:

    {"add": {"path": "...", "description": "..."}}
    {"update": {"path": "...", "content": "...", "why": "..."}}
    {"remove": {"path": "..."}}
    {"finish": "final report"}
    {"continue": ["pending/path", ...]}   (replay files only)
"""

import json
from dataclasses import dataclass
from typing import Any, Literal, Union

from autosrc.errors import ParseError, ValidationError
from autosrc.utils.parsing import loads_response


@dataclass(frozen=True)
class Add:
    path: str
    description: str
    kind: Literal["add"] = "add"


@dataclass(frozen=True)
class Update:
    path: str
    content: Any  # Checked by the interpreter, not the parser.
    why: str
    kind: Literal["update"] = "update"


@dataclass(frozen=True)
class Remove:
    path: str
    kind: Literal["remove"] = "remove"


@dataclass(frozen=True)
class Finish:
    report: str
    kind: Literal["finish"] = "finish"


@dataclass(frozen=True)
class Continue:
    paths: tuple[str, ...]
    kind: Literal["continue"] = "continue"


Command = Union[Add, Update, Remove, Finish, Continue]

GENERATOR_KINDS = frozenset({"add", "update", "remove", "finish"})
REPLAY_KINDS = frozenset({"update", "continue", "finish"})


def _require_path(kind: str, body: Any) -> str:
    if not isinstance(body, dict):
        raise ValidationError(f"'{kind}' payload must be an object, got {type(body).__name__}.")
    path = body.get("path")
    if not isinstance(path, str) or not path.strip():
        raise ValidationError(f"'{kind}' payload missing a non-empty string 'path'.")
    return path


def parse_command(raw: Any, allowed: frozenset = GENERATOR_KINDS) -> Command:
    """Convert one decoded JSON object into a Command dataclass.

    Raises ValidationError if the object does not carry exactly one of the
    allowed keys or its payload has the wrong shape.
    """
    if not isinstance(raw, dict):
        raise ValidationError(f"Command must be an object, got {type(raw).__name__}.")

    keys = [k for k in raw if k in allowed]
    if len(keys) != 1:
        raise ValidationError(
            f"Command must have exactly one of {sorted(allowed)}, got keys {sorted(raw)}."
        )
    kind = keys[0]
    body = raw[kind]

    if kind == "add":
        path = _require_path(kind, body)
        description = body.get("description", "")
        if not isinstance(description, str):
            raise ValidationError(f"'add' description for {path} must be a string.")
        return Add(path=path, description=description)

    if kind == "update":
        path = _require_path(kind, body)
        why = body.get("why", "")
        return Update(path=path, content=body.get("content"), why=why if isinstance(why, str) else str(why))

    if kind == "remove":
        return Remove(path=_require_path(kind, body))

    if kind == "finish":
        if not isinstance(body, str):
            raise ValidationError("'finish' payload must be a string report.")
        return Finish(report=body)

    if kind == "continue":
        if not isinstance(body, list) or not all(isinstance(p, str) for p in body):
            raise ValidationError("'continue' payload must be a list of paths.")
        return Continue(paths=tuple(body))

    raise ValidationError(f"Unknown command kind '{kind}'.")


def parse_commands(data: Any, allowed: frozenset = GENERATOR_KINDS) -> list[Command]:
    """Validate a decoded batch and convert every element. The whole batch fails on the first bad command."""
    if not isinstance(data, list):
        raise ParseError(f"Command batch must be a JSON array, got {type(data).__name__}.")
    commands = []
    for i, raw in enumerate(data):
        try:
            commands.append(parse_command(raw, allowed))
        except ValidationError as exc:
            raise ValidationError(f"Command {i}: {exc}") from exc
    return commands


def load_batch(text: str, allowed: frozenset = GENERATOR_KINDS) -> list[Command]:
    """Decode a JSON text payload into a list of commands.

    Fenced replies are accepted; the raw text is always tried first.
    """
    try:
        data = loads_response(text)
    except (json.JSONDecodeError, TypeError, AttributeError) as exc:
        raise ParseError(f"Response is not valid JSON: {exc}") from exc
    return parse_commands(data, allowed)
