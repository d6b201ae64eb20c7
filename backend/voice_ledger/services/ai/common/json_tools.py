"""Helpers for pulling JSON out of free-form LLM responses.

``extract_payload`` removes a fenced code block wrapper (```json ... ```)
and ``extract_json`` finds the first brace-balanced object or array.
"""

from __future__ import annotations

import json
import logging
import re

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[ \t]*(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)

# Deeper input is treated as unparseable rather than handed to json.loads.
MAX_NESTING_DEPTH = 64


def extract_payload(raw: str | None) -> str:
    """Return the inner text of the first fenced block, else *raw* stripped.

    A missing fence is the normal case and never an error.
    """
    if not raw:
        return ""
    match = _FENCE_RE.search(raw)
    if match:
        return match.group(1).strip()
    return raw.strip()


def extract_json(text: str) -> dict | list | None:
    """Try to extract the first valid JSON object or array from *text*.

    Strategy:
    1. Attempt ``json.loads`` on the full text (fast path).
    2. Slide through the text looking for ``{`` or ``[`` and attempt
       brace-balanced extraction.
    3. Return ``None`` if nothing works.
    """
    if not text or not text.strip():
        return None

    stripped = text.strip()
    depth = nesting_depth(stripped)
    if depth > MAX_NESTING_DEPTH:
        logger.warning("JSON candidate nested %d levels deep, not parsing", depth)
        return None

    # Fast path: whole text is valid JSON
    try:
        return json.loads(stripped)
    except (json.JSONDecodeError, ValueError, RecursionError):
        pass

    for i, ch in enumerate(stripped):
        if ch == "{":
            result = _extract_balanced(stripped, i, "{", "}")
            if result is not None:
                return result
        elif ch == "[":
            result = _extract_balanced(stripped, i, "[", "]")
            if result is not None:
                return result

    return None


def _extract_balanced(
    text: str, start: int, open_ch: str, close_ch: str
) -> dict | list | None:
    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(text)):
        ch = text[i]

        if escape:
            escape = False
            continue

        if ch == "\\":
            if in_string:
                escape = True
            continue

        if ch == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                candidate = text[start : i + 1]
                try:
                    return json.loads(candidate)
                except (json.JSONDecodeError, ValueError, RecursionError):
                    return None

    return None


def nesting_depth(text: str) -> int:
    """Deepest ``{``/``[`` nesting in *text*, ignoring brackets inside strings."""
    depth = 0
    deepest = 0
    in_string = False
    escape = False

    for ch in text:
        if escape:
            escape = False
            continue
        if ch == "\\":
            if in_string:
                escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch in "{[":
            depth += 1
            deepest = max(deepest, depth)
        elif ch in "}]" and depth > 0:
            depth -= 1

    return deepest
