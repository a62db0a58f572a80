"""Helpers for pulling structured data out of model responses."""

import json
import re


def parse_json_response(text: str):
    """Extract JSON from an LLM response that may contain markdown fences.

    Raises ValueError when no JSON object or array can be found.
    """
    m = re.search(r'```(?:json)?\s*\n(.*?)\n```', text, re.DOTALL)
    if m:
        try:
            return json.loads(m.group(1))
        except json.JSONDecodeError:
            pass

    cleaned = text.strip()
    if cleaned.startswith('{') or cleaned.startswith('['):
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            pass

    # Outermost bracketed span, objects before arrays
    for open_ch, close_ch in [('{', '}'), ('[', ']')]:
        start = cleaned.find(open_ch)
        end = cleaned.rfind(close_ch)
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                continue

    raise ValueError(f"Could not parse JSON from response: {text[:200]}...")


def strip_code_fence(text: str) -> str:
    """Drop a single surrounding markdown fence, if any."""
    m = re.fullmatch(r'\s*```[\w-]*\s*\n(.*?)\n```\s*', text, re.DOTALL)
    if m:
        return m.group(1)
    return text.strip()
