"""Low-level text helpers and provider-reply parsers.

No dependency on schemas, models, or any other project module.

Every parser returns a tagged result: ``Parsed`` when the provider followed the
requested JSON shape, ``Fallback`` when the value had to be recovered some
other way (or could not be recovered at all, in which case ``value`` is None).
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

LIST_PREFIX_REGEX = re.compile(r"^\s*(?:\d+\s*[.)]|[-*•])\s*")
CODE_FENCE_REGEX = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


@dataclass(frozen=True)
class Parsed:
    value: Any


@dataclass(frozen=True)
class Fallback:
    value: Any


ParseResult = Union[Parsed, Fallback]


def normalize_whitespace(text: str) -> str:
    return " ".join((text or "").split()).strip()


def word_count(text: str) -> int:
    return len((text or "").split())


def truncate(text: str, limit: int, ellipsis: str = "...") -> str:
    text = text or ""
    return text[:limit] + (ellipsis if len(text) > limit else "")


def query_keywords(query: str, min_length: int = 3) -> list[str]:
    """Lower-cased words of at least ``min_length`` characters, in order."""
    return [w for w in (query or "").lower().split() if len(w) >= min_length]


def title_keywords(title: str) -> list[str]:
    # words longer than 3 chars, punctuation kept off the edges
    words = [w.strip(" ,.;:!?()[]{}\"'") for w in (title or "").lower().split()]
    seen: list[str] = []
    for w in words:
        if len(w) > 3 and w not in seen:
            seen.append(w)
    return seen


def strip_list_prefix(line: str) -> str:
    line = LIST_PREFIX_REGEX.sub("", line or "")
    return line.strip().strip(",").strip().strip('"').strip()


def strip_code_fence(text: str) -> str:
    return CODE_FENCE_REGEX.sub("", (text or "").strip()).strip()


def extract_json_object(text: str) -> Optional[dict]:
    raw = strip_code_fence(text)
    if not raw:
        return None
    try:
        obj = json.loads(raw)
        return obj if isinstance(obj, dict) else None
    except ValueError:
        pass

    start = raw.find("{")
    end = raw.rfind("}")
    if start >= 0 and end > start:
        try:
            obj = json.loads(raw[start : end + 1])
            return obj if isinstance(obj, dict) else None
        except ValueError:
            return None
    return None


def parse_string_list(text: str, max_item_length: Optional[int] = None) -> ParseResult:
    """JSON array of strings, else one item per non-empty line.

    An object wrapping exactly one array (``{"suggestions": [...]}``) is
    unwrapped. Any other JSON value yields ``Fallback([])`` rather than its
    source lines.
    """
    raw = strip_code_fence(text)
    try:
        data = json.loads(raw)
    except ValueError:
        data = None
    if isinstance(data, dict):
        arrays = [value for value in data.values() if isinstance(value, list)]
        if len(arrays) == 1:
            data = arrays[0]
    if isinstance(data, list):
        items = [normalize_whitespace(str(item)) for item in data]
        return Parsed([item for item in items if item])
    if data is not None:
        return Fallback([])

    items = []
    for line in raw.splitlines():
        item = strip_list_prefix(line)
        if not item or item in ("[", "]"):
            continue
        if max_item_length is not None and len(item) >= max_item_length:
            continue
        items.append(item)
    return Fallback(items)


def parse_id_array(text: str) -> ParseResult:
    """First JSON array found in the reply, as a list of string ids."""
    match = re.search(r"\[.*?\]", text or "", re.DOTALL)
    if match:
        try:
            data = json.loads(match.group(0))
        except ValueError:
            data = None
        if isinstance(data, list):
            return Parsed([str(item) for item in data if item is not None])
    return Fallback(None)


def parse_strict_object(text: str) -> ParseResult:
    """Whole reply must be one JSON object (code fences tolerated)."""
    try:
        data = json.loads(strip_code_fence(text))
    except ValueError:
        return Fallback(None)
    if isinstance(data, dict):
        return Parsed(data)
    return Fallback(None)


def parse_embedded_object(text: str) -> ParseResult:
    data = extract_json_object(text)
    if data is None:
        return Fallback(None)
    return Parsed(data)
