"""Branch segment helpers.

A branch name such as ``feature/Foo Bar`` is split into segments, the first
segment is mapped to a channel or suffix keyword, and the result is joined
back into a folder path::

    >>> split_segments("feature/Foo Bar")
    ['feature', 'FOO_BAR']
    >>> translate_first_segment(["feature", "FOO_BAR"], {"feature": "development"})
    ['development', 'FOO_BAR']
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING

from ..core.errors import ValidationError
from ..core.logging import log_event

if TYPE_CHECKING:
    from ..core.context import RunContext

DEFAULT_MAX_SEGMENTS = 2
DEFAULT_FORBIDDEN = ("latest", "foo")
DEFAULT_TRANSLATION = "unknown"

# Windows reserved file-name characters, used on every host so folder names match across agents.
INVALID_FILENAME_CHARS = frozenset('"<>|:*?\\/' + "".join(chr(i) for i in range(32)))

_SEPARATOR_RE = re.compile(r"[\\/]")


def _sanitize(segment: str) -> str:
    return "".join("-" if ch in INVALID_FILENAME_CHARS else ch for ch in segment)


def split_segments(
    value: str | None,
    max_segments: int = DEFAULT_MAX_SEGMENTS,
    forbidden: Iterable[str] = DEFAULT_FORBIDDEN,
) -> list[str]:
    """Split a branch name into normalized path segments.

    Every ``/`` or ``\\`` is a boundary; empty segments from leading, trailing
    or doubled separators are kept and count towards ``max_segments``.
    The first segment is lower-cased, the others upper-cased, and spaces
    become underscores in all of them.

    Raises ``ValidationError`` when there are more than ``max_segments``
    segments or when a segment matches ``forbidden`` case-insensitively.
    """
    if not value:
        return []
    raw = _SEPARATOR_RE.split(value)
    if len(raw) > max_segments:
        raise ValidationError(
            f"too many segments in `{value}`: {len(raw)} > {max_segments}",
            kind="too_many_segments",
        )
    blocked = {item.casefold() for item in forbidden}
    for segment in raw:
        if segment.casefold() in blocked:
            raise ValidationError(f"forbidden segment `{segment}` in `{value}`", kind="forbidden_segment")
    out: list[str] = []
    for index, segment in enumerate(raw):
        clean = _sanitize(segment).replace(" ", "_")
        out.append(clean.lower() if index == 0 else clean.upper())
    return out


def lookup_translation(segment: str, table: Mapping[str, str]) -> str | None:
    """Return the lower-cased value of the first key matching ``segment`` case-insensitively."""
    wanted = segment.casefold()
    for key, translated in table.items():
        if key.casefold() == wanted:
            return translated.lower()
    return None


def translate_first_segment(
    segments: Sequence[str],
    table: Mapping[str, str],
    default: str = DEFAULT_TRANSLATION,
    ctx: RunContext | None = None,
) -> list[str]:
    """Replace the first segment through ``table``; keys match case-insensitively."""
    out = list(segments)
    if not out:
        log_event(ctx, "error", "segments", "translate-empty", table=",".join(table))
        return out
    translated = lookup_translation(out[0], table)
    if translated is not None:
        out[0] = translated
        return out
    log_event(ctx, "debug", "segments", "translate-miss", segment=segments[0], default=default)
    out[0] = default
    return out


def compose_segments(
    segments: Sequence[str] | None,
    overrides: Sequence[str | None] | None = None,
    append: Sequence[str] | None = None,
) -> list[str]:
    """Build the component list for ``join_segments``.

    A non-empty override wins over the segment at the same index; a hole
    (``None`` or ``""``) keeps the segment. Overrides only extend the result
    past the original length when one of the extra positions is set, and the
    gaps before it become empty components.
    """
    if not segments:
        return []
    overrides = list(overrides or [])
    length = len(segments)
    if len(overrides) > length and any(overrides[length:]):
        length = len(overrides)
    out: list[str] = []
    for index in range(length):
        override = overrides[index] if index < len(overrides) else None
        if override:
            out.append(override)
        elif index < len(segments):
            out.append(segments[index])
        else:
            out.append("")
    out.extend(append or [])
    return out


def join_segments(
    segments: Sequence[str] | None,
    overrides: Sequence[str | None] | None = None,
    append: Sequence[str] | None = None,
) -> str:
    components = compose_segments(segments, overrides, append)
    if not components:
        return ""
    path = components[0]
    for component in components[1:]:
        # empty components add no level, same as a hierarchical combine
        if component:
            path = os.path.join(path, component)
    return path
