"""
Cache key derivation for CMS requests.
"""

from typing import Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote

QueryParameters = Union[Mapping[str, object], Iterable[Tuple[str, object]]]


def _as_pairs(query_parameters: Optional[QueryParameters]) -> List[Tuple[str, str]]:
    if not query_parameters:
        return []
    items = query_parameters.items() if isinstance(query_parameters, Mapping) else query_parameters
    return [(str(name), _stringify(value)) for name, value in items]


def _stringify(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def split_endpoint(endpoint: str) -> Tuple[str, List[Tuple[str, str]]]:
    """Split ``path?query`` into a normalized path and its query pairs."""
    path, _, query = endpoint.partition("?")
    path = "/" + path.strip("/")
    return path, parse_qsl(query, keep_blank_values=True)


def build_key(endpoint: str, query_parameters: Optional[QueryParameters] = None) -> str:
    """Derive a stable cache key for an endpoint and its query parameters.

    Parameters embedded in ``endpoint`` are merged with ``query_parameters``
    and sorted by name (then value), so insertion order never changes the key
    while any differing value does.
    """
    path, pairs = split_endpoint(endpoint)
    pairs.extend(_as_pairs(query_parameters))
    if not pairs:
        return path

    query = "&".join(
        f"{quote(name, safe='')}={quote(value, safe='')}"
        for name, value in sorted(pairs)
    )
    return f"{path}?{query}"
