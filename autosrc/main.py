"""Entry points: validates startup conditions, bootstraps the manifest, runs the loop."""

import sys
from pathlib import Path

from autosrc.agents.generator import request_initial_plan
from autosrc.config import get_config
from autosrc.errors import AutosrcError, ManifestNotFoundError
from autosrc.graph import run_graph
from autosrc.manifest import ManifestStore
from autosrc.replay import replay_files
from autosrc.state import VALID_MODES, GenerationState
from autosrc.utils.formatter import write_report
from autosrc.utils.references import load_references
from autosrc.utils.validator import check_credentials, load_spec


def load_or_bootstrap_manifest(manifest_path: Path, spec) -> ManifestStore:
    """Load the manifest, asking the generator for an initial plan if there is none.

    A malformed existing manifest is not replaced: its ParseError propagates.
    """
    try:
        return ManifestStore.load(manifest_path)
    except ManifestNotFoundError:
        pass

    plan = request_initial_plan(spec)
    store = ManifestStore.from_plan(manifest_path, plan)
    store.save()
    print(f"[autosrc] Initial manifest: {len(store.files)} file(s)")
    return store


def init_state(spec_path: str, mode: str, root: Path) -> GenerationState:
    """Build the starting state. Every failure here is fatal to the run."""
    config = get_config()
    spec = load_spec(spec_path)
    references = load_references(config.get("reference_paths") or [], root=root)
    store = load_or_bootstrap_manifest(root / config["manifest_path"], spec)

    return {
        "spec": spec,
        "references": references,
        "manifest": store,
        "root": str(root),
        "mode": mode,
        "feedback": None,
        "last_failure": None,
        "error_history": [],
        "batch": [],
        "conversation": [],
        "notes": [],
        "cycle": 0,
        "status": "in_progress",
        "report": None,
    }


def _print_error_history(state: GenerationState) -> None:
    for failure in state["error_history"]:
        print(
            f"[autosrc]   cycle {failure['cycle']} [{failure['kind']}]: {failure['message']}",
            file=sys.stderr,
        )


def run(spec_path: str, mode: str | None = None, root: Path | None = None) -> int:
    """Run the full generation loop for one specification.

    Args:
        spec_path: Path to the JSON specification document.
        mode: Override for the prompting mode. None uses config default.
        root: Directory generated paths resolve against. Defaults to cwd.

    Returns:
        Process exit code: 0 on Finish, 1 otherwise.
    """
    config = get_config()
    mode = mode or config.get("mode", "single-shot")
    root = Path(root) if root is not None else Path.cwd()

    try:
        check_credentials(config)
    except AutosrcError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if mode not in VALID_MODES:
        print(f"Error: unknown mode '{mode}'. Must be one of: {', '.join(VALID_MODES)}", file=sys.stderr)
        return 1

    try:
        state = init_state(spec_path, mode, root)
    except (AutosrcError, OSError) as exc:
        print(f"[autosrc] Failed to initialize: {exc}", file=sys.stderr)
        return 1

    try:
        final_state = run_graph(state)
    except OSError as exc:
        print(f"[autosrc] Fatal error while applying commands: {exc}", file=sys.stderr)
        return 1

    report_path = config.get("report_path")
    if report_path:
        output_path = write_report(final_state, report_path)
        print(f"[autosrc] Run report written to: {output_path}")

    print(f"[autosrc] Status: {final_state['status']}")
    print(f"[autosrc] Cycles: {final_state['cycle']}")

    if final_state["status"] == "finished":
        print("\nGeneration complete!")
        print(final_state["report"])
        return 0

    if final_state["status"] == "fatal":
        print("[autosrc] Generation failed twice in a row. Error history:", file=sys.stderr)
    else:
        print("[autosrc] Stopped at the cycle limit without a finish command.", file=sys.stderr)
    _print_error_history(final_state)
    return 1


def main() -> None:
    """CLI entry point: autosrc [--mode MODE] <spec.json>"""
    args = sys.argv[1:]
    mode = None

    if "--mode" in args:
        i = args.index("--mode")
        if i + 1 >= len(args):
            print("Error: --mode needs a value", file=sys.stderr)
            sys.exit(1)
        mode = args[i + 1]
        del args[i:i + 2]

    if len(args) != 1:
        print("Usage: autosrc [--mode single-shot|context-accumulating] <spec.json>", file=sys.stderr)
        sys.exit(1)

    sys.exit(run(args[0], mode=mode))


def replay_main() -> None:
    """CLI entry point: autosrc-replay <commands.json>..."""
    files = sys.argv[1:]
    if not files:
        print("Please provide at least one command file as an argument.")
        sys.exit(1)

    replay_files(files)


if __name__ == "__main__":
    main()
