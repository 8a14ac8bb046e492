"""Run report — Markdown summary of a generation run."""

from pathlib import Path

from autosrc.state import GenerationState

_STATUS_LABELS = {
    "finished": "Finished",
    "fatal": "Fatal error",
    "max_cycles_reached": "Max cycles reached",
    "in_progress": "Interrupted",
}


def _render_markdown(state: GenerationState) -> str:
    """Convert the final generation state into a Markdown run report."""
    lines = ["# autosrc Run Report", ""]

    lines.append(f"- **Status:** {_STATUS_LABELS.get(state['status'], state['status'])}")
    lines.append(f"- **Cycles:** {state['cycle']}")
    lines.append(f"- **Mode:** {state['mode']}")
    lines.append("")

    if state.get("report"):
        lines.append("## Final Report")
        lines.append("")
        lines.append(state["report"])
        lines.append("")

    files = state["manifest"].files
    if files:
        lines.append("## Manifest")
        lines.append("")
        lines.append("| Path | Status | Description |")
        lines.append("|------|--------|-------------|")
        for f in files:
            lines.append(f"| `{f.path}` | {f.status} | {f.description} |")
        lines.append("")

    history = state.get("error_history", [])
    if history:
        lines.append("## Error History")
        lines.append("")
        for failure in history:
            lines.append(f"- **Cycle {failure['cycle']}** [{failure['kind']}] {failure['message']}")
        lines.append("")

    return "\n".join(lines)


def write_report(state: GenerationState, report_path: str | Path) -> Path:
    """Write the run report, creating parent directories. Returns the path written."""
    output_path = Path(report_path)
    if not output_path.is_absolute():
        output_path = Path(state["root"]) / output_path
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(_render_markdown(state), encoding="utf-8")
    return output_path
