"""Helpers for pulling structured data out of free-form model output."""
import json
from typing import Any, Dict, List, Optional, Tuple

_decoder = json.JSONDecoder()


def _balanced_spans(text: str) -> List[Tuple[int, int]]:
    """Return (start, end) of every brace-balanced span, leftmost start first.

    Single pass over ``text`` with a stack of open braces. Braces inside string
    literals do not count towards the balance; a raw newline ends a string,
    since JSON strings cannot hold one.
    """
    spans: List[Tuple[int, int]] = []
    opened: List[int] = []
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"' or ch == "\n":
                in_string = False
        elif ch == "{":
            opened.append(i)
        elif ch == "}":
            if opened:
                spans.append((opened.pop(), i + 1))
        elif ch == '"' and opened:
            in_string = True
    spans.sort()
    return spans


def first_json_object_span(text: str, containing: Optional[str] = None) -> Optional[Tuple[int, int]]:
    if not text:
        return None
    covered = 0
    for start, _ in _balanced_spans(text):
        if start < covered:
            continue
        try:
            _, end = _decoder.raw_decode(text, start)
        except (json.JSONDecodeError, RecursionError):
            # RecursionError: nesting deeper than the decoder can follow
            continue
        if containing is not None and containing not in text[start:end]:
            # objects nested in this one cannot contain it either
            covered = end
            continue
        return start, end
    return None


def first_json_object(text: str, containing: Optional[str] = None) -> Optional[str]:
    """Return the first span of ``text`` that is a complete JSON object.

    Leading and trailing prose and markdown fences are ignored. When
    ``containing`` is given, only spans including that literal are considered.
    """
    span = first_json_object_span(text, containing)
    if span is None:
        return None
    return text[span[0]:span[1]]


def load_first_json_object(text: str, containing: Optional[str] = None) -> Optional[Dict[str, Any]]:
    raw = first_json_object(text, containing)
    return json.loads(raw) if raw is not None else None
