"""Pull a single JSON object out of model output.

Models wrap JSON in ```json fences, surround it with prose, or emit
JavaScript-style object literals with bare keys. ``repair_json`` handles
those cases and raises ``ParseRepairError`` for anything else.
"""

import json
import re
from typing import Optional, Tuple

from errors import ParseRepairError

_FENCE_RE = re.compile(r"^[ \t]*```[A-Za-z]*[ \t]*$\n?", re.MULTILINE)
_STRING_RE = re.compile(r'"(?:\\.|[^"\\])*"')
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:")


def strip_fences(text: str) -> str:
    """Drop lines that hold only a code fence marker."""
    return _FENCE_RE.sub("", text).strip()


def find_json_object(text: str) -> Optional[Tuple[int, int]]:
    """Return (start, end) of the first balanced {...} block, end exclusive.

    Braces inside double-quoted strings do not count toward the depth.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return start, i + 1
    return None


def quote_bare_keys(text: str) -> str:
    """Quote identifier keys that precede a colon, leaving string literals alone."""
    pieces = []
    last = 0
    for match in _STRING_RE.finditer(text):
        pieces.append(_BARE_KEY_RE.sub(r'\1"\2":', text[last:match.start()]))
        pieces.append(match.group(0))
        last = match.end()
    pieces.append(_BARE_KEY_RE.sub(r'\1"\2":', text[last:]))
    return "".join(pieces)


def repair_json(text: str) -> dict:
    """Extract, repair and parse the first JSON object in ``text``."""
    if text is None:
        raise ParseRepairError("No response text", raw="")

    # Fences sit outside the object, so the brace scan skips them
    bounds = find_json_object(text)
    if bounds is None:
        raise ParseRepairError("No JSON object found in response", raw=text)

    candidate = quote_bare_keys(text[bounds[0]:bounds[1]])
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ParseRepairError(f"Invalid JSON in response: {e}", raw=text) from e

    if not isinstance(parsed, dict):
        raise ParseRepairError("Response JSON is not an object", raw=text)
    return parsed


def split_markdown_and_json(text: str) -> Tuple[str, Optional[dict]]:
    """Split a response into the prose before its JSON object and the object.

    When no usable object is present the whole response is returned as
    markdown and the object is None.
    """
    bounds = find_json_object(text)
    if bounds is None:
        return text.strip(), None
    try:
        parsed = repair_json(text[bounds[0]:bounds[1]])
    except ParseRepairError:
        return text.strip(), None
    markdown = strip_fences(text[:bounds[0]])
    return markdown, parsed
