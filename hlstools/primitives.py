"""Low-level helpers shared by the M3U8 playlist decoders and encoders."""

from __future__ import annotations

import re
from datetime import timedelta

_UINT_RE = re.compile(r"[0-9]+")


class PlaylistError(ValueError):
    """Raised when a playlist, or one of its parts, cannot be decoded."""


def parse_uint(value: str, bits: int = 64) -> int:
    """Parse a base-10 unsigned integer that must fit in ``bits`` bits."""
    if not _UINT_RE.fullmatch(value):
        raise PlaylistError(f"invalid unsigned integer: {value!r}")
    number = int(value)
    if number >= 1 << bits:
        raise PlaylistError(f"value out of range: {value}")
    return number


def parse_float(value: str) -> float:
    """Parse a decimal floating-point number without surrounding whitespace."""
    if not value or value != value.strip() or "_" in value:
        raise PlaylistError(f"invalid number: {value!r}")
    try:
        return float(value)
    except ValueError as exc:
        raise PlaylistError(f"invalid number: {value!r}") from exc


def unmarshal_attributes(v: str) -> dict[str, str]:
    """Decode a comma-separated ``KEY=VALUE`` attribute list."""
    attrs: dict[str, str] = {}

    while v:
        key, sep, v = v.partition("=")
        if not sep:
            raise PlaylistError("key not found")
        key = key.lstrip(" ")

        if v.startswith('"'):
            val, sep, v = v[1:].partition('"')
            if not sep:
                raise PlaylistError("value end delimiter not found")
            attrs[key] = val

            if v:
                if v[0] != ",":
                    raise PlaylistError("delimiter not found")
                v = v[1:]
        else:
            val, sep, v = v.partition(",")
            attrs[key] = val
            if not sep:
                break

    return attrs


def unmarshal_byte_range(v: str) -> tuple[int, int | None]:
    """Decode a ``length[@start]`` byte range."""
    length_str, sep, start_str = v.partition("@")
    length = parse_uint(length_str)
    if not sep:
        return length, None
    return length, parse_uint(start_str)


def marshal_byte_range(length: int, start: int | None) -> str:
    """Encode a ``length[@start]`` byte range."""
    if start is None:
        return str(length)
    return f"{length}@{start}"


def unmarshal_duration(val: str) -> timedelta:
    """Decode a duration expressed in decimal seconds."""
    seconds = parse_float(val)
    try:
        return timedelta(seconds=seconds)
    except (OverflowError, ValueError) as exc:
        raise PlaylistError(f"invalid duration: {val!r}") from exc


def unmarshal_header(s: str) -> str:
    """Check the ``#EXTM3U`` header and return the rest of the document."""
    line, rest = read_line(s)
    if line != "#EXTM3U":
        raise PlaylistError("M3U8 header is missing")
    return rest


def read_line(s: str) -> tuple[str, str]:
    """Split off the first line of ``s``; return the line and the remainder."""
    line, sep, rest = s.partition("\n")
    if not sep:
        return s, ""
    if line.endswith("\r"):
        line = line[:-1]
    return line, rest