"""Content Generator — asks the chat model for the next batch of file commands.

Two prompting modes share one code path:

- single-shot: every cycle sends a fresh system + user message containing
  the specification and the current manifest.
- context-accumulating: the specification and reference documents go in the
  system message once, earlier cycles are replayed as conversation turns,
  and a failed response is followed by a correction message.
"""

import json
import sys

from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI

from autosrc.commands import load_batch
from autosrc.config import get_config
from autosrc.errors import GenerationError, ParseError, ValidationError
from autosrc.state import GenerationFailure, GenerationState
from autosrc.utils.parsing import invoke_with_retry, loads_response, response_text
from autosrc.utils.references import render_references

# Context overflow thresholds for context-accumulating mode
CONTEXT_CHAR_LIMIT = 200_000
ROUNDS_TO_KEEP_VERBATIM = 3

SYSTEM_PROMPT = """\
You are a source code generator. You receive a project specification and a manifest \
of the files that make up the project, and you produce the files one batch at a time.

Respond with a JSON array of command objects, each in exactly one of these formats:

ADD: { "add": { "path": "file path", "description": "file description" } }
UPDATE: { "update": { "path": "file path", "content": "file contents", "why": "reason for update" } }
REMOVE: { "remove": { "path": "file path" } }
FINISH: { "finish": "final report" }

Rules:
- Paths are relative to the project root.
- Generate only files that are not yet marked as generated. Include the full file contents in UPDATE commands.
- Use ADD to register a file you discover is needed but is missing from the manifest.
- Use REMOVE only for files that already exist and are no longer needed.
- Send FINISH once every file in the manifest is generated or deleted. Commands after FINISH are ignored.
- Respond ONLY with the JSON array. No markdown fences, no commentary.
"""

PLAN_PROMPT = """\
Given this project specification:
{spec}

Please predict the project structure and create a manifest of all files that will need to be generated.
The manifest should be a JSON array of objects with this format:
{{
  "path": "relative path to the file",
  "description": "description of the file's purpose",
  "status": "pending"
}}

Respond with only the JSON array."""

CORRECTION_PROMPT = """\
Your previous response could not be used: {message}

Please try again with ONLY the raw JSON array of commands, \
no markdown fences, no commentary."""


def _make_llm(config: dict):
    """Instantiate the chat model for the configured provider."""
    provider = config.get("provider", "anthropic")
    model_name = config["generator_model"]
    temperature = config.get("temperature", 0)
    max_tokens = config.get("max_tokens", 4096)

    if provider == "anthropic":
        return ChatAnthropic(model=model_name, temperature=temperature, max_tokens=max_tokens)
    if provider == "google":
        return ChatGoogleGenerativeAI(
            model=model_name, temperature=temperature, max_output_tokens=max_tokens
        )
    raise ValueError(f"Unknown provider '{provider}'. Must be one of: anthropic, google")


def _dump(value) -> str:
    return json.dumps(value, indent=2)


def _system_content(state: GenerationState) -> str:
    parts = [SYSTEM_PROMPT]

    if state["mode"] == "context-accumulating":
        parts.append(f"## Project Specification\n{_dump(state['spec'])}")
        summaries = [e["content"] for e in state["conversation"] if e.get("summary")]
        if summaries:
            parts.append("## Summary of Earlier Cycles\n" + "\n\n".join(summaries))

    references = render_references(state["references"])
    if references:
        parts.append(references)

    return "\n\n".join(parts)


def _render_failure(failure: GenerationFailure) -> str:
    text = f"## Previous Attempt Failed\n{failure['kind']} error: {failure['message']}"
    if failure.get("response"):
        text += f"\n\nYour previous response was:\n```\n{failure['response']}\n```"
    return text + "\n\nCorrect the problem in this response."


def _build_user_prompt(state: GenerationState) -> str:
    """Construct the user prompt for one cycle from state."""
    parts = []
    if state["mode"] == "single-shot":
        parts.append(f"Project specification:\n{_dump(state['spec'])}")

    parts.append(f"Current manifest:\n{_dump(state['manifest'].to_dict())}")

    if state["notes"]:
        parts.append(
            "Some commands in your last batch were skipped:\n"
            + "\n".join(f"- {note}" for note in state["notes"])
        )

    feedback = state["feedback"]
    in_conversation = state["mode"] == "context-accumulating" and feedback and feedback.get("response")
    if feedback and not in_conversation:
        parts.append(_render_failure(feedback))

    parts.append(
        "Please continue generating source files, skipping any that are already marked as generated.\n"
        "Respond with only the JSON array of commands."
    )
    return "\n\n".join(parts)


def _maybe_summarize_conversation(conversation: list[dict], llm) -> list[dict]:
    """If the conversation is too long, summarize older rounds.

    Keeps the last rounds verbatim and folds everything earlier, including
    previous summaries, into a single summary entry.
    """
    serialized = json.dumps(conversation)
    if len(serialized) < CONTEXT_CHAR_LIMIT:
        return conversation

    turns = [e for e in conversation if not e.get("summary")]
    keep = ROUNDS_TO_KEEP_VERBATIM * 2  # user + assistant per round
    if len(turns) <= keep:
        return conversation

    early = [e for e in conversation if e.get("summary")] + turns[:-keep]
    summary_prompt = (
        "Summarize the following earlier generation cycles into a single concise "
        "paragraph. Preserve which files were produced and any unresolved problems.\n\n"
        f"```json\n{json.dumps(early, indent=2)}\n```"
    )
    response = invoke_with_retry(
        llm, [{"role": "user", "content": summary_prompt}], label="conversation summary"
    )

    summary_entry = {"summary": True, "content": response_text(response).strip()}
    return [summary_entry] + turns[-keep:]


def build_messages(state: GenerationState) -> tuple[list[dict], str]:
    """Assemble the chat messages for one cycle.

    Returns (messages, user_prompt). The conversation in state is used as is;
    summarising it is the caller's job.
    """
    user_prompt = _build_user_prompt(state)
    messages = [{"role": "system", "content": _system_content(state)}]

    if state["mode"] == "context-accumulating":
        messages += [
            {"role": e["role"], "content": e["content"]}
            for e in state["conversation"] if not e.get("summary")
        ]
        feedback = state["feedback"]
        if feedback and feedback.get("response"):
            messages.append({"role": "user", "content": user_prompt})
            messages.append({"role": "assistant", "content": feedback["response"]})
            messages.append({
                "role": "user",
                "content": CORRECTION_PROMPT.format(message=feedback["message"]),
            })
            return messages, user_prompt

    messages.append({"role": "user", "content": user_prompt})
    return messages, user_prompt


def _generation_failure(cycle: int, exc: Exception) -> dict:
    failure: GenerationFailure = {
        "cycle": cycle,
        "kind": "generation",
        "message": f"{type(exc).__name__}: {exc}",
        "response": None,
    }
    print(f"[autosrc] Error during generation: {failure['message']}", file=sys.stderr)
    return {"cycle": cycle, "batch": [], "last_failure": failure}


def generate_node(state: GenerationState) -> dict:
    """Generate node for the driver graph.

    Invokes the chat model and parses its reply into a command batch.
    Model call and parse failures are not raised: they are returned as
    ``last_failure`` so the graph can route to a retry or to the fatal state.
    """
    config = get_config()
    llm = _make_llm(config)
    cycle = state["cycle"] + 1

    print(f"[autosrc] Cycle {cycle}: {len(state['manifest'].pending())} file(s) pending")

    # Model calls only: provider SDK errors share no base class.
    conversation = state["conversation"]
    if state["mode"] == "context-accumulating" and conversation:
        try:
            conversation = _maybe_summarize_conversation(conversation, llm)
        except Exception as exc:
            return _generation_failure(cycle, exc)

    messages, user_prompt = build_messages({**state, "conversation": conversation})

    try:
        response = invoke_with_retry(llm, messages, label=f"cycle {cycle}")
    except Exception as exc:
        return _generation_failure(cycle, exc)

    text = response_text(response)
    print(f"[autosrc] RESPONSE: {text}")

    try:
        batch = load_batch(text)
    except (ParseError, ValidationError) as exc:
        failure = {
            "cycle": cycle,
            "kind": "parse" if isinstance(exc, ParseError) else "validation",
            "message": str(exc),
            "response": text,
        }
        print(f"[autosrc] Could not parse generator response: {exc}", file=sys.stderr)
        return {"cycle": cycle, "batch": [], "last_failure": failure}

    updates = {"cycle": cycle, "batch": batch, "last_failure": None}
    if state["mode"] == "context-accumulating":
        updates["conversation"] = conversation + [
            {"role": "user", "content": user_prompt},
            {"role": "assistant", "content": text},
        ]
    return updates


def request_initial_plan(spec) -> list:
    """Ask the chat model for the initial file plan.

    Returns the decoded JSON array. Raises GenerationError if the call fails
    and ParseError if the reply is not JSON.
    """
    config = get_config()
    llm = _make_llm(config)

    print("[autosrc] Generating initial manifest")
    messages = [{"role": "user", "content": PLAN_PROMPT.format(spec=_dump(spec))}]
    try:
        response = invoke_with_retry(llm, messages, label="initial plan")
    except Exception as exc:
        raise GenerationError(f"Initial plan request failed: {type(exc).__name__}: {exc}") from exc

    try:
        return loads_response(response_text(response))
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse initial manifest: {exc}") from exc
