"""Helpers for JSON documents stored in text columns."""

import json


def parse_json(value, default=None):
    """
    Parse JSON from a string, returning containers as-is.

    ``default`` is returned for None, empty strings and undecodable text.
    """
    if isinstance(value, (dict, list)):
        return value
    if isinstance(value, str) and value:
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return default
    return default


def dump_json(value) -> str:
    """Serialize a document for storage in a text column."""
    return json.dumps(value, default=str)
