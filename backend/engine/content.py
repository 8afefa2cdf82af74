"""
Derived-content normalization.

The enrichment pipeline writes `analyzedFileContent` asynchronously, so a
record fetched during provisioning can carry any of these shapes:
- missing / null
- a plain string
- an array of fragments (strings or {text|content|value} objects)
- an object with a lifecycle tag: {"state": "loading" | "ready" | ..., "value": ...}
- some other primitive

`normalize_derived_content` decodes all of them into one string using an
ordered list of (matcher, decoder) strategies. It is pure and idempotent.
"""
import json
from typing import Any, Callable, List, Tuple

LOADING_STATES = frozenset({"loading", "pending"})
READY_STATES = frozenset({"ready", "complete", "generated"})

# Content shorter than this is treated as not-yet-arrived
MIN_CONTENT_LENGTH = 20

# Stringified objects that leak through some upstream integrations
STRINGIFICATION_ARTIFACTS = frozenset({"[object Object]", "{}", "[]", "null", "undefined"})

FRAGMENT_KEYS = ("text", "content", "value")


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _decode_fragment(item: Any) -> str:
    if isinstance(item, dict):
        for key in FRAGMENT_KEYS:
            if item.get(key):
                return _stringify(item[key])
        return json.dumps(item)
    return _stringify(item)


def _decode_array(raw: List[Any]) -> str:
    return "\n".join(_decode_fragment(item) for item in raw)


def _decode_tagged(raw: dict) -> str:
    state = raw.get("state")
    if state in LOADING_STATES:
        return ""
    # An explicit null value without a ready tag means the pipeline has not written yet
    if "value" in raw and raw["value"] is None and state not in READY_STATES:
        return ""
    for key in ("value", "text", "content"):
        if raw.get(key):
            return _stringify(raw[key])
    return ""


DECODERS: List[Tuple[Callable[[Any], bool], Callable[[Any], str]]] = [
    (lambda raw: raw is None, lambda raw: ""),
    (lambda raw: isinstance(raw, str), lambda raw: raw),
    (lambda raw: isinstance(raw, (list, tuple)), _decode_array),
    (lambda raw: isinstance(raw, dict), _decode_tagged),
]


def normalize_derived_content(raw: Any) -> str:
    """Decode a raw derived-content field into a plain string ("" when absent or loading)."""
    for matches, decode in DECODERS:
        if matches(raw):
            return decode(raw)
    return _stringify(raw)


def has_arrived(content: str) -> bool:
    """True when normalized content is substantial enough to configure an agent with."""
    stripped = content.strip()
    if not stripped or stripped in STRINGIFICATION_ARTIFACTS:
        return False
    return len(stripped) >= MIN_CONTENT_LENGTH
