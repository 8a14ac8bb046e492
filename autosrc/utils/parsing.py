"""Shared parsing and LLM utilities for generator responses."""

import json
import re
import sys

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

# Whole response wrapped in one fence; greedy so fences inside file content survive
_OUTER_FENCE_RE = re.compile(r"^```(?:json)?[ \t]*\n(.*)\n[ \t]*```$", re.DOTALL)
# First fenced block inside surrounding prose
_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)


def strip_fences(text: str) -> str:
    """Strip markdown code fences from LLM output if present."""
    stripped = text.strip()
    match = _OUTER_FENCE_RE.match(stripped) or _FENCE_RE.search(stripped)
    return match.group(1).strip() if match else stripped


def loads_response(text: str):
    """Decode a JSON response body.

    The raw text is tried first; fences are only stripped when it does not
    decode, since generated file contents often carry their own code blocks.
    Raises json.JSONDecodeError from the fence-stripped attempt.
    """
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError:
        return json.loads(strip_fences(text))


def response_text(response) -> str:
    """Return the text of a chat model response.

    Some providers return a list of content blocks instead of a plain string.
    """
    content = response.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


# 529 is Anthropic's "overloaded" status
TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504, 529})


def _is_transient(exc: BaseException) -> bool:
    """Return True for network failures and provider-side HTTP errors worth retrying."""
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in TRANSIENT_STATUS_CODES
    return False


def invoke_with_retry(llm, messages, max_retries: int = 3, label: str = "generator call"):
    """Call llm.invoke(messages), backing off exponentially on transient errors.

    ``llm_max_retries`` in config overrides max_retries. Anything that is not
    transient (auth failures, bad requests, SDK errors) is raised at once.
    label names the call in the retry log line.
    """
    from autosrc.config import get_config

    retries = get_config().get("llm_max_retries", max_retries)

    def _log_retry(retry_state):
        print(
            f"[autosrc] {label}: transient error {retry_state.outcome.exception()!r}. "
            f"Retrying in {retry_state.next_action.sleep:.0f}s "
            f"(attempt {retry_state.attempt_number}/{retries})",
            file=sys.stderr,
        )

    @retry(
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=1, min=2, max=16),
        retry=retry_if_exception(_is_transient),
        reraise=True,
        before_sleep=_log_retry,
    )
    def _invoke():
        return llm.invoke(messages)

    return _invoke()
