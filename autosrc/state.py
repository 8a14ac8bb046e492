"""Generation state — the session value threaded through every driver step."""

from typing import Any, Literal, TypedDict

from autosrc.commands import Command
from autosrc.manifest import ManifestStore

Mode = Literal["single-shot", "context-accumulating"]
VALID_MODES = ("single-shot", "context-accumulating")


class GenerationFailure(TypedDict):
    cycle: int
    kind: Literal["generation", "parse", "validation"]
    message: str
    response: str | None  # Raw generator text, when there was one.


class GenerationState(TypedDict):
    spec: Any  # Parsed specification document. Immutable after init.
    references: list[dict]  # Preloaded reference documents ({"name", "content"}).
    manifest: ManifestStore  # Manifest handle; flushed on every mutation.
    root: str  # Directory command paths resolve against.
    mode: Mode
    feedback: GenerationFailure | None  # Pending retry feedback. At most one.
    last_failure: GenerationFailure | None  # Failure from the most recent generate step.
    error_history: list[GenerationFailure]  # Every failure this run, in order.
    batch: list[Command]  # Commands parsed in the most recent generate step.
    conversation: list[dict]  # Earlier exchanges (context-accumulating mode only).
    notes: list[str]  # Validation issues from the last apply, reported next cycle.
    cycle: int  # Generation attempts so far. Starts at 0.
    status: Literal["in_progress", "finished", "fatal", "max_cycles_reached"]
    report: str | None  # Finish report, once received.
