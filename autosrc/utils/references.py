"""Reference documents preloaded into every generation prompt.

Paths come from ``reference_paths`` in config.yaml. Typical entries are style
guides, API docs or an existing module the generated code has to match.
"""

from pathlib import Path

from autosrc.errors import ParseError


def load_references(paths: list[str] | None = None, root: Path | None = None) -> list[dict]:
    """Read each reference file into a ``{"name", "content"}`` dict.

    Relative paths resolve against root (default: current directory).
    A missing or unreadable file raises OSError, and ParseError if it is not
    UTF-8 text. References are read once at startup, so either is a
    bootstrap failure.
    """
    if paths is None:
        from autosrc.config import get_config

        paths = get_config().get("reference_paths") or []

    root = Path(root) if root is not None else Path.cwd()
    references = []
    for raw in paths:
        path = Path(raw)
        if not path.is_absolute():
            path = root / path
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Reference {raw} is not valid UTF-8: {exc}") from exc
        references.append({"name": str(raw), "content": content})
    return references


def render_references(references: list[dict]) -> str:
    """Format loaded references as a prompt section. Empty string if there are none."""
    if not references:
        return ""
    parts = ["## Reference Documents"]
    for ref in references:
        parts.append(f"\n### {ref['name']}\n```\n{ref['content']}\n```")
    return "\n".join(parts)
