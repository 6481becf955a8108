"""Nested path lookup for API payloads, e.g. ``data.items[0].name``.

A path is parsed once into field/index steps and applied left to right.
Any missing intermediate node yields None instead of raising.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

_TOKEN = re.compile(r"([^.\[\]]+)|\[(-?\d+)\]|\[([^\]]*)\]")


@dataclass(frozen=True)
class FieldStep:
    name: str


@dataclass(frozen=True)
class IndexStep:
    index: int


PathStep = FieldStep | IndexStep


class PathSyntaxError(ValueError):
    pass


@lru_cache(maxsize=256)
def parse_path(path: str) -> tuple[PathStep, ...]:
    """Split ``a.b[2].c`` into steps. ``[key]`` with a non-integer is a field."""
    if not path or not path.strip():
        raise PathSyntaxError("Empty path")

    steps: list[PathStep] = []
    position = 0
    text = path.strip()
    while position < len(text):
        if text[position] == ".":
            position += 1
            continue
        match = _TOKEN.match(text, position)
        if not match:
            raise PathSyntaxError(f"Cannot parse path {path!r} at offset {position}")
        field, index, bracket_field = match.groups()
        if field is not None:
            steps.append(FieldStep(field))
        elif index is not None:
            steps.append(IndexStep(int(index)))
        else:
            steps.append(FieldStep(bracket_field.strip("'\"")))
        position = match.end()
    return tuple(steps)


def apply_path(value: Any, steps: tuple[PathStep, ...]) -> Any:
    current = value
    for step in steps:
        if current is None:
            return None
        if isinstance(step, IndexStep):
            if not isinstance(current, list):
                return None
            try:
                current = current[step.index]
            except IndexError:
                return None
        elif isinstance(current, dict):
            current = current.get(step.name)
        elif isinstance(current, list) and step.name.isdigit():
            index = int(step.name)
            current = current[index] if index < len(current) else None
        else:
            return None
    return current


def get_value_by_path(value: Any, path: str | None) -> Any:
    """Look up ``path`` in a decoded JSON value; None when absent or unparsable."""
    if value is None or not path:
        return None
    try:
        steps = parse_path(path)
    except PathSyntaxError:
        return None
    return apply_path(value, steps)
