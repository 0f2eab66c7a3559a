"""
Key-case helpers at the storage/API boundary.
Persisted offer payloads and API bodies are camelCase; ORM columns and decline
metadata are snake_case. Legacy offer arrays were written with either.
"""
from typing import Any

from pydantic.alias_generators import to_camel, to_snake


def dict_keys_to_camel(obj: Any) -> Any:
    """Recursively convert dict keys from snake_case to camelCase for API responses."""
    if isinstance(obj, dict):
        return {to_camel(k): dict_keys_to_camel(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [dict_keys_to_camel(x) for x in obj]
    return obj


def dict_keys_to_snake(obj: Any) -> Any:
    """Recursively convert dict keys from camelCase to snake_case."""
    if isinstance(obj, dict):
        return {to_snake(k): dict_keys_to_snake(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [dict_keys_to_snake(x) for x in obj]
    return obj


def header_key(header: str) -> str:
    """Normalize a spreadsheet header ('  Best  Lender ') to a lookup key ('best lender')."""
    return " ".join(str(header or "").split()).lower()
