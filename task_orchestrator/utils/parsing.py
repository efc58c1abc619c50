"""Helpers for pulling structured data out of free-form model output."""

import json
from typing import Any, Dict

from ..exceptions import ParseError


_decoder = json.JSONDecoder()


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the first well-formed JSON object embedded in ``text``.

    Scans each ``{`` in order and attempts a decode from that position, so
    prose, markdown fences and trailing commentary around the object are
    tolerated. Arrays and scalars are skipped.

    Raises:
        ParseError: if no JSON object can be decoded.
    """
    if not text:
        raise ParseError("Empty response")

    index = text.find("{")
    while index != -1:
        try:
            value, _ = _decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(value, dict):
                return value
        index = text.find("{", index + 1)

    raise ParseError("No JSON object found in response")
