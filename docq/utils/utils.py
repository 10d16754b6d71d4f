import json
from datetime import datetime


def get_date(date_str):
    """Parse a date string in ISO or common formats. Returns ISO string or None if invalid."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S"):
        try:
            return datetime.strptime(date_str, fmt).isoformat()
        except ValueError:
            continue
    return None


def parse_value(text: str):
    """Turn a command-line value into a typed field value.

    JSON literals (numbers, booleans, null, lists, objects) are decoded,
    dates are normalized to ISO strings, anything else stays a string.
    """
    text = text.strip()
    try:
        return json.loads(text)
    except ValueError:
        pass
    return get_date(text) or text


def parse_assignment(text: str):
    """Split ``key=value`` into a field name and a parsed value"""
    key, sep, value = text.partition("=")
    key = key.strip()
    if not sep or not key:
        raise ValueError(f"Expected key=value, got {text!r}")
    return key, parse_value(value)
