"""LangGraph StateGraph definition for the generation loop.

    generate ──ok──> apply ──finish──> END
       │  ^            └──more──> generate
       │  └── retry <──first failure
       └──second consecutive failure──> fatal ──> END

Both routers send the run to ``timeout`` once ``max_cycles`` is reached.
"""

from pathlib import Path

from langgraph.graph import END, StateGraph

from autosrc.agents.generator import generate_node
from autosrc.config import get_config
from autosrc.interpreter import apply_commands
from autosrc.state import GenerationState

DEFAULT_MAX_CYCLES = 100


def _max_cycles() -> int:
    return get_config().get("max_cycles") or DEFAULT_MAX_CYCLES


def _route_after_generate(state: GenerationState) -> str:
    """Conditional edge: decide next step after the generate node.

    Priority order:
    1. batch parsed → apply
    2. failure while feedback is already pending → fatal
    3. cycle >= max_cycles → timeout
    4. first failure → retry
    """
    if state["last_failure"] is None:
        return "apply"
    if state["feedback"] is not None:
        return "fatal"
    if state["cycle"] >= _max_cycles():
        return "timeout"
    return "retry"


def _route_after_apply(state: GenerationState) -> str:
    """Conditional edge: stop on Finish, otherwise go round again."""
    if state["status"] == "finished":
        return "end"
    if state["cycle"] >= _max_cycles():
        return "timeout"
    return "generate"


def _apply_node(state: GenerationState) -> dict:
    """Apply the parsed batch and clear any pending feedback."""
    config = get_config()
    result = apply_commands(
        state["batch"],
        state["manifest"],
        Path(state["root"]),
        remove_missing=config.get("remove_missing", "fail"),
    )

    updates = {
        "batch": [],
        "feedback": None,
        "notes": [str(e) for e in result.errors],
    }
    if result.finished:
        updates["status"] = "finished"
        updates["report"] = result.report
    return updates


def _record_retry(state: GenerationState) -> dict:
    """Spend the retry credit: the failure becomes feedback for the next cycle."""
    failure = state["last_failure"]
    print(f"[autosrc] Retrying with error feedback (cycle {failure['cycle']})")
    return {
        "feedback": failure,
        "error_history": state["error_history"] + [failure],
    }


def _set_fatal(state: GenerationState) -> dict:
    """Second consecutive failure: record it and stop."""
    return {
        "status": "fatal",
        "error_history": state["error_history"] + [state["last_failure"]],
    }


def _set_timeout(state: GenerationState) -> dict:
    """Set status to max_cycles_reached when the cycle ceiling is hit."""
    updates = {"status": "max_cycles_reached"}
    if state["last_failure"] is not None:
        updates["error_history"] = state["error_history"] + [state["last_failure"]]
    return updates


# --- Build the graph ---

workflow = StateGraph(GenerationState)

workflow.add_node("generate", generate_node)
workflow.add_node("apply", _apply_node)
workflow.add_node("retry", _record_retry)
workflow.add_node("fatal", _set_fatal)
workflow.add_node("timeout", _set_timeout)

workflow.set_entry_point("generate")

workflow.add_conditional_edges(
    "generate",
    _route_after_generate,
    {
        "apply": "apply",
        "retry": "retry",
        "fatal": "fatal",
        "timeout": "timeout",
    },
)

workflow.add_conditional_edges(
    "apply",
    _route_after_apply,
    {
        "end": END,
        "generate": "generate",
        "timeout": "timeout",
    },
)

workflow.add_edge("retry", "generate")
workflow.add_edge("fatal", END)
workflow.add_edge("timeout", END)

graph = workflow.compile()


def run_graph(state: GenerationState) -> GenerationState:
    """Run the loop to completion.

    LangGraph counts every node as one step, and each cycle takes two
    (generate + apply or generate + retry), so the recursion limit is sized
    from max_cycles.
    """
    limit = _max_cycles() * 2 + 5
    return graph.invoke(state, config={"recursion_limit": limit})
