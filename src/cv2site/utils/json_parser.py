"""Utilities to pull JSON objects out of LLM responses."""

from __future__ import annotations

import json
import re

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?([\s\S]*?)```", re.IGNORECASE)

# Characters that may legitimately follow a closing string quote
_STRING_TERMINATORS = frozenset(",:}]")
_VALID_ESCAPES = frozenset('"\\/bfnrt')
_HEX = frozenset("0123456789abcdefABCDEF")
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


def parse_json_object(text: str) -> dict:
    """Strict parse. Raises ``ValueError`` unless ``text`` is one JSON object."""
    try:
        data = json.loads(text)
    except RecursionError as exc:
        raise ValueError("JSON nesting is too deep") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def find_json_candidate(text: str) -> str | None:
    """Return the fenced code block or first ``{`` to last ``}`` span, if any."""
    match = _FENCE_RE.search(text)
    if match and "{" in match.group(1):
        return match.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return None


def repair_json(text: str) -> str:
    """Best-effort repair of near-JSON produced by a model.

    Handles the shapes seen when models embed large HTML/CSS strings:

    - raw newlines, carriage returns, tabs and other control characters
      inside string values
    - unescaped double quotes inside string values (a quote counts as closing
      only when followed by ``,`` ``:`` ``}`` ``]`` or the end of input)
    - lone backslashes that do not start a valid JSON escape
    - stray backticks outside strings (leftover markdown fences)
    - trailing commas before ``}`` or ``]``

    This is a heuristic, not a general JSON fixer; the result may still fail
    to parse.
    """
    out: list[str] = []
    in_string = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if not in_string:
            if ch == '"':
                in_string = True
                out.append(ch)
            elif ch == "`":
                pass
            elif ch == "," and _next_significant(text, i + 1) in ("}", "]"):
                pass
            else:
                out.append(ch)
            i += 1
            continue

        if ch == "\\":
            nxt = text[i + 1] if i + 1 < n else ""
            if nxt and nxt in _VALID_ESCAPES:
                out.append(ch + nxt)
                i += 2
                continue
            if nxt == "u" and i + 6 <= n and all(c in _HEX for c in text[i + 2 : i + 6]):
                out.append(text[i : i + 6])
                i += 6
                continue
            out.append("\\\\")
        elif ch == '"':
            following = _next_significant(text, i + 1)
            if following == "" or following in _STRING_TERMINATORS:
                in_string = False
                out.append(ch)
            else:
                out.append('\\"')
        elif ch in _CONTROL_ESCAPES:
            out.append(_CONTROL_ESCAPES[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def extract_json(text: str) -> dict:
    """Extract a JSON object from a response that is not clean JSON.

    Tries in order:
    1. The fenced block or brace span, as-is
    2. The same span after ``repair_json``
    """
    candidate = find_json_candidate(text)
    if candidate is None:
        raise ValueError(f"Could not extract JSON from text: {text[:200]}...")

    try:
        return parse_json_object(candidate)
    except ValueError:
        pass

    try:
        return parse_json_object(repair_json(candidate))
    except ValueError as exc:
        raise ValueError(f"Could not repair JSON from text: {exc}") from exc


def _next_significant(text: str, start: int) -> str:
    """First non-whitespace character at or after ``start`` ('' at end)."""
    for i in range(start, len(text)):
        if not text[i].isspace():
            return text[i]
    return ""
