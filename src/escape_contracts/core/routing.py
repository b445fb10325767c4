"""Path templates: specificity ordering so literal segments win over {params}."""
from __future__ import annotations

import re

_PARAM_SEGMENT = re.compile(r"^\{[^}]+\}$")


def split_path(path: str) -> list[str]:
    return [seg for seg in path.strip("/").split("/") if seg]


def specificity(path: str) -> tuple[int, int]:
    """
    Sort key, most specific first: more literal segments, then more segments.
    /products/featured < /products/{id} < /products.
    """
    segments = split_path(path)
    literals = sum(1 for seg in segments if not _PARAM_SEGMENT.match(seg))
    return (-literals, -len(segments))


def join_path(prefix: str, path: str) -> str:
    return "/" + "/".join(split_path(prefix) + split_path(path))
