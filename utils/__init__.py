"""Shared utilities for the backend."""
from utils.case import dict_keys_to_camel, dict_keys_to_snake, header_key

__all__ = [
    "dict_keys_to_camel",
    "dict_keys_to_snake",
    "header_key",
]
