"""Pull the structured bill document out of a chat-completions response."""
from __future__ import annotations
import json
import re
from typing import Any

from ..exceptions import ExtractionError

_FENCED_JSON = re.compile(r'```(?:json)?\s*\n(.*?)\n\s*```', re.DOTALL)


def extract_json_object(text: str) -> dict:
    """Parse a JSON object from model text.

    Tool arguments are normally bare JSON, but some gateways wrap them in a
    fenced block or surround them with prose; try, in order, the whole text,
    the first fenced block, then the outermost braces.
    """
    text = (text or "").strip()
    candidates = [text]
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    first_brace, last_brace = text.find('{'), text.rfind('}')
    if first_brace != -1 and last_brace > first_brace:
        candidates.append(text[first_brace:last_brace + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise ValueError(f"Could not extract JSON from response: {text[:200]}...")


def parse_tool_call(message: Any, tool_name: str) -> dict:
    """Return the arguments of the *tool_name* call on a chat message.

    Falls back to JSON in the message content when the gateway answered in
    plain text.  Raises :class:`ExtractionError` when neither is usable.
    """
    for call in getattr(message, "tool_calls", None) or []:
        function = getattr(call, "function", None)
        if function is None or getattr(function, "name", tool_name) != tool_name:
            continue
        try:
            return extract_json_object(function.arguments)
        except ValueError as exc:
            raise ExtractionError("Tool call arguments were not valid JSON", details=str(exc)) from exc

    content = getattr(message, "content", None)
    if content:
        try:
            return extract_json_object(content)
        except ValueError:
            pass

    raise ExtractionError("No structured data returned from AI")
