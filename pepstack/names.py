"""Helpers for canonicalising compound names and list-valued record fields."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from typing import Any, Iterator, List

__all__ = ["normalize_name", "names_overlap", "parse_text_list"]


_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")
# Longer variants first so "nodac" is consumed before the bare "dac" can match.
_DAC_VARIANTS = re.compile(r"nodac|withdac|dac")
_LIST_DELIMITERS = re.compile(r"[;|\n]+")
_QUOTE_CHARS = "\"'`“”’"


def normalize_name(name: Any) -> str:
    """Return the canonical matching token for a free-text compound name.

    The token is lower-cased, stripped of everything outside ``[a-z0-9]`` and
    has the ``nodac``/``withdac``/``dac`` qualifiers removed so that
    ``"CJC-1295 (no DAC)"`` and ``"CJC-1295"`` compare equal.  Removal is
    repeated until the token is stable, which keeps the function idempotent
    for inputs such as ``"ddacac"``.
    """

    if name is None:
        return ""
    token = _NON_ALPHANUMERIC.sub("", str(name).lower())
    while True:
        stripped = _DAC_VARIANTS.sub("", token)
        if stripped == token:
            return token
        token = stripped


def names_overlap(left: str, right: str) -> bool:
    """True when either canonical token contains the other."""

    return left in right or right in left


def _strip_outer_quotes(text: str) -> str:
    text = text.strip()
    while len(text) >= 2 and text[0] in _QUOTE_CHARS and text[-1] in _QUOTE_CHARS:
        text = text[1:-1].strip()
    return text


def _flatten(value: Any) -> Iterator[str]:
    if value is None:
        return

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return

        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                yield from _flatten(parsed)
                return

        for chunk in _LIST_DELIMITERS.split(text):
            chunk = _strip_outer_quotes(chunk)
            if chunk:
                yield chunk
        return

    if isinstance(value, (bytes, bytearray)):
        yield from _flatten(value.decode("utf-8", errors="ignore"))
        return

    if isinstance(value, dict):
        for item in value.values():
            yield from _flatten(item)
        return

    if isinstance(value, Iterable):
        for item in value:
            if isinstance(item, str):
                # Items of a real list are whole entries; only trim them.
                text = _strip_outer_quotes(item)
                if text:
                    yield text
            else:
                yield from _flatten(item)
        return

    text = str(value).strip()
    if text:
        yield text


def parse_text_list(value: Any) -> List[str]:
    """Parse a list-valued field (e.g. recommendations) into ordered strings.

    Accepts real lists, JSON array strings, or ``;``/``|``/newline separated
    text as produced by spreadsheet exports.  Order is preserved and empty
    entries are dropped; duplicates are kept because recommendation lists are
    curated in the order they should be shown.
    """

    return list(_flatten(value))
