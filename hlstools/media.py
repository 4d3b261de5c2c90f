"""Media M3U8 playlists."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from hlstools.multivariant import MAX_SUPPORTED_VERSION, MultivariantStart
from hlstools.primitives import (
    PlaylistError,
    marshal_byte_range,
    parse_uint,
    read_line,
    unmarshal_attributes,
    unmarshal_byte_range,
    unmarshal_duration,
    unmarshal_header,
)

MediaStart = MultivariantStart

_TIME_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:?\d{2})"
)


def _seconds(value: timedelta) -> str:
    return f"{value.total_seconds():.5f}"


def _to_text(buf: bytes | str) -> str:
    if isinstance(buf, str):
        return buf
    return buf.decode("utf-8", errors="replace")


def parse_time(v: str) -> datetime:
    """Parse an ISO 8601 date-time; the zone may be Z, +hh:mm or +hhmm."""
    match = _TIME_RE.fullmatch(v)
    if match is None:
        raise PlaylistError(f"invalid date-time: {v!r}")

    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction = match.group(7) or ""
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0

    zone = match.group(8)
    try:
        if zone == "Z":
            tz = timezone.utc
        else:
            sign = -1 if zone[0] == "-" else 1
            digits = zone[1:].replace(":", "")
            tz = timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:])))
        return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)
    except ValueError as exc:
        raise PlaylistError(f"invalid date-time: {v!r}") from exc


def _format_time(value: datetime) -> str:
    ret = value.strftime("%Y-%m-%dT%H:%M:%S")
    millis = value.microsecond // 1000
    if millis:
        ret += "." + f"{millis:03d}".rstrip("0")

    offset = value.utcoffset()
    if not offset:
        return ret + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = int(abs(offset).total_seconds()) // 60
    return ret + f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


class MediaPlaylistType(str, Enum):
    """Value of an EXT-X-PLAYLIST-TYPE tag."""

    EVENT = "EVENT"
    VOD = "VOD"


@dataclass
class MediaMap:
    """An EXT-X-MAP tag."""

    uri: str = ""
    byte_range_length: int | None = None
    byte_range_start: int | None = None

    @classmethod
    def unmarshal(cls, value: str) -> MediaMap:
        """Decode the attributes of the tag."""
        tag = cls()
        for key, val in unmarshal_attributes(value).items():
            if key == "URI":
                tag.uri = val
            elif key == "BYTERANGE":
                tag.byte_range_length, tag.byte_range_start = unmarshal_byte_range(val)

        if not tag.uri:
            raise PlaylistError("URI not found")
        return tag

    def marshal(self) -> str:
        """Encode the tag as a line."""
        ret = f'#EXT-X-MAP:URI="{self.uri}"'
        if self.byte_range_length is not None:
            ret += ",BYTERANGE=" + marshal_byte_range(self.byte_range_length, self.byte_range_start)
        return ret + "\n"


@dataclass
class MediaPart:
    """An EXT-X-PART tag."""

    duration: timedelta = timedelta(0)
    uri: str = ""
    independent: bool = False
    byte_range_length: int | None = None
    byte_range_start: int | None = None
    gap: bool = False

    @classmethod
    def unmarshal(cls, value: str) -> MediaPart:
        """Decode the attributes of the tag."""
        part = cls()
        for key, val in unmarshal_attributes(value).items():
            if key == "DURATION":
                part.duration = unmarshal_duration(val)
            elif key == "URI":
                part.uri = val
            elif key == "INDEPENDENT":
                part.independent = val == "YES"
            elif key == "BYTERANGE":
                part.byte_range_length, part.byte_range_start = unmarshal_byte_range(val)
            elif key == "GAP":
                part.gap = True

        if not part.duration:
            raise PlaylistError("DURATION missing")
        if not part.uri:
            raise PlaylistError("URI missing")
        return part

    def marshal(self) -> str:
        """Encode the tag as a line."""
        ret = f'#EXT-X-PART:DURATION={_seconds(self.duration)},URI="{self.uri}"'
        if self.independent:
            ret += ",INDEPENDENT=YES"
        if self.byte_range_length is not None:
            ret += ",BYTERANGE=" + marshal_byte_range(self.byte_range_length, self.byte_range_start)
        if self.gap:
            ret += ",GAP=YES"
        return ret + "\n"


@dataclass
class MediaPartInf:
    """An EXT-X-PART-INF tag."""

    part_target: timedelta = timedelta(0)

    @classmethod
    def unmarshal(cls, value: str) -> MediaPartInf:
        """Decode the attributes of the tag."""
        tag = cls()
        for key, val in unmarshal_attributes(value).items():
            if key == "PART-TARGET":
                tag.part_target = unmarshal_duration(val)

        if not tag.part_target:
            raise PlaylistError("PART-TARGET missing")
        return tag

    def marshal(self) -> str:
        """Encode the tag as a line."""
        return f"#EXT-X-PART-INF:PART-TARGET={_seconds(self.part_target)}\n"


@dataclass
class MediaPreloadHint:
    """An EXT-X-PRELOAD-HINT tag."""

    uri: str = ""
    byte_range_start: int = 0
    byte_range_length: int | None = None

    @classmethod
    def unmarshal(cls, value: str) -> MediaPreloadHint:
        """Decode the attributes of the tag."""
        tag = cls()
        type_received = False
        for key, val in unmarshal_attributes(value).items():
            if key == "TYPE":
                if val != "PART":
                    raise PlaylistError(f"unsupported type: {val}")
                type_received = True
            elif key == "URI":
                tag.uri = val
            elif key == "BYTERANGE-START":
                tag.byte_range_start = parse_uint(val)
            elif key == "BYTERANGE-LENGTH":
                tag.byte_range_length = parse_uint(val)

        if not type_received:
            raise PlaylistError("TYPE is missing")
        if not tag.uri:
            raise PlaylistError("URI is missing")
        return tag

    def marshal(self) -> str:
        """Encode the tag as a line."""
        ret = f'#EXT-X-PRELOAD-HINT:TYPE=PART,URI="{self.uri}"'
        if self.byte_range_start:
            ret += f",BYTERANGE-START={self.byte_range_start}"
        if self.byte_range_length is not None:
            ret += f",BYTERANGE-LENGTH={self.byte_range_length}"
        return ret + "\n"


@dataclass
class MediaSegment:
    """A segment of a media playlist."""

    duration: timedelta = timedelta(0)
    title: str = ""
    uri: str = ""
    date_time: datetime | None = None
    gap: bool = False
    bitrate: int | None = None
    byte_range_length: int | None = None
    byte_range_start: int | None = None
    parts: list[MediaPart] = field(default_factory=list)

    def validate(self) -> None:
        """Raise PlaylistError if a required field is missing."""
        if not self.duration:
            raise PlaylistError("duration missing")
        if not self.uri:
            raise PlaylistError("URI missing")

    def marshal(self) -> str:
        """Encode the segment and its tags."""
        ret = ""
        if self.date_time is not None:
            ret += f"#EXT-X-PROGRAM-DATE-TIME:{_format_time(self.date_time)}\n"
        if self.gap:
            ret += "#EXT-X-GAP\n"
        if self.bitrate is not None:
            ret += f"#EXT-X-BITRATE:{self.bitrate}\n"
        ret += "".join(part.marshal() for part in self.parts)
        ret += f"#EXTINF:{_seconds(self.duration)},{self.title}\n"
        if self.byte_range_length is not None:
            ret += (
                "#EXT-X-BYTERANGE:"
                + marshal_byte_range(self.byte_range_length, self.byte_range_start)
                + "\n"
            )
        return ret + self.uri + "\n"


@dataclass
class MediaServerControl:
    """An EXT-X-SERVER-CONTROL tag."""

    can_block_reload: bool = False
    part_hold_back: timedelta | None = None
    can_skip_until: timedelta | None = None

    @classmethod
    def unmarshal(cls, value: str) -> MediaServerControl:
        """Decode the attributes of the tag."""
        tag = cls()
        for key, val in unmarshal_attributes(value).items():
            if key == "CAN-BLOCK-RELOAD":
                tag.can_block_reload = val == "YES"
            elif key == "PART-HOLD-BACK":
                tag.part_hold_back = unmarshal_duration(val)
            elif key == "CAN-SKIP-UNTIL":
                tag.can_skip_until = unmarshal_duration(val)
        return tag

    def marshal(self) -> str:
        """Encode the tag as a line."""
        ret = "#EXT-X-SERVER-CONTROL:"
        if self.can_block_reload:
            ret += "CAN-BLOCK-RELOAD=YES"
        if self.part_hold_back is not None:
            ret += f",PART-HOLD-BACK={_seconds(self.part_hold_back)}"
        if self.can_skip_until is not None:
            ret += f",CAN-SKIP-UNTIL={_seconds(self.can_skip_until)}"
        return ret + "\n"


@dataclass
class MediaSkip:
    """An EXT-X-SKIP tag."""

    skipped_segments: int = 0

    @classmethod
    def unmarshal(cls, value: str) -> MediaSkip:
        """Decode the attributes of the tag."""
        found = False
        tag = cls()
        for key, val in unmarshal_attributes(value).items():
            if key == "SKIPPED-SEGMENTS":
                tag.skipped_segments = parse_uint(val, 31)
                found = True

        if not found:
            raise PlaylistError("SKIPPED-SEGMENTS missing")
        return tag

    def marshal(self) -> str:
        """Encode the tag as a line."""
        return f"#EXT-X-SKIP:SKIPPED-SEGMENTS={self.skipped_segments}\n"


def _after(line: str, prefix: str) -> str | None:
    return line[len(prefix):] if line.startswith(prefix) else None


@dataclass
class Media:
    """A media playlist."""

    version: int = 0
    independent_segments: bool = False
    start: MediaStart | None = None
    allow_cache: bool | None = None
    target_duration: int = 0
    server_control: MediaServerControl | None = None
    part_inf: MediaPartInf | None = None
    media_sequence: int = 0
    discontinuity_sequence: int | None = None
    playlist_type: MediaPlaylistType | None = None
    map: MediaMap | None = None
    skip: MediaSkip | None = None
    segments: list[MediaSegment] = field(default_factory=list)
    parts: list[MediaPart] = field(default_factory=list)
    preload_hint: MediaPreloadHint | None = None
    endlist: bool = False

    @classmethod
    def unmarshal(cls, buf: bytes | str) -> Media:
        """Decode a playlist."""
        s = unmarshal_header(_to_text(buf))
        pl = cls()
        cur = MediaSegment()

        while True:
            line, s = read_line(s)
            if not line and not s:
                break

            if (rest := _after(line, "#EXT-X-VERSION:")) is not None:
                pl.version = parse_uint(rest, 31)
                if pl.version > MAX_SUPPORTED_VERSION:
                    raise PlaylistError(f"unsupported HLS version ({pl.version})")

            elif line.startswith("#EXT-X-INDEPENDENT-SEGMENTS"):
                pl.independent_segments = True

            elif (rest := _after(line, "#EXT-X-START:")) is not None:
                pl.start = MediaStart.unmarshal(rest)

            elif (rest := _after(line, "#EXT-X-ALLOW-CACHE:")) is not None:
                pl.allow_cache = rest == "YES"

            elif (rest := _after(line, "#EXT-X-TARGETDURATION:")) is not None:
                pl.target_duration = parse_uint(rest.split(".", 1)[0], 31)

            elif (rest := _after(line, "#EXT-X-SERVER-CONTROL:")) is not None:
                pl.server_control = MediaServerControl.unmarshal(rest)

            elif (rest := _after(line, "#EXT-X-PART-INF:")) is not None:
                pl.part_inf = MediaPartInf.unmarshal(rest)

            elif (rest := _after(line, "#EXT-X-MEDIA-SEQUENCE:")) is not None:
                pl.media_sequence = parse_uint(rest, 31)

            elif (rest := _after(line, "#EXT-X-DISCONTINUITY-SEQUENCE:")) is not None:
                pl.discontinuity_sequence = parse_uint(rest, 31)

            elif (rest := _after(line, "#EXT-X-PLAYLIST-TYPE:")) is not None:
                try:
                    pl.playlist_type = MediaPlaylistType(rest)
                except ValueError as exc:
                    raise PlaylistError(f"invalid playlist type: {rest}") from exc

            elif (rest := _after(line, "#EXT-X-MAP:")) is not None:
                pl.map = MediaMap.unmarshal(rest)

            elif (rest := _after(line, "#EXT-X-SKIP:")) is not None:
                pl.skip = MediaSkip.unmarshal(rest)

            elif (rest := _after(line, "#EXT-X-PROGRAM-DATE-TIME:")) is not None:
                cur.date_time = parse_time(rest)

            elif line == "#EXT-X-GAP":
                cur.gap = True

            elif (rest := _after(line, "#EXT-X-BITRATE:")) is not None:
                cur.bitrate = parse_uint(rest, 31)

            elif (rest := _after(line, "#EXTINF:")) is not None:
                duration, sep, title = rest.partition(",")
                if not sep:
                    raise PlaylistError(f"invalid EXTINF: {rest}")
                cur.duration = unmarshal_duration(duration)
                cur.title = title.strip()

            elif (rest := _after(line, "#EXT-X-BYTERANGE:")) is not None:
                cur.byte_range_length, cur.byte_range_start = unmarshal_byte_range(rest)

            elif (rest := _after(line, "#EXT-X-PART:")) is not None:
                cur.parts.append(MediaPart.unmarshal(rest))

            elif line and not line.startswith("#"):
                cur.uri = line
                cur.validate()
                pl.segments.append(cur)
                cur = MediaSegment()

            elif (rest := _after(line, "#EXT-X-PRELOAD-HINT:")) is not None:
                pl.preload_hint = MediaPreloadHint.unmarshal(rest)

            elif line == "#EXT-X-ENDLIST":
                pl.endlist = True

        pl.parts = cur.parts

        if pl.target_duration == 0:
            raise PlaylistError("TARGETDURATION not set")
        if not pl.segments:
            raise PlaylistError("no segments found")
        return pl

    def marshal(self) -> bytes:
        """Encode the playlist."""
        ret = f"#EXTM3U\n#EXT-X-VERSION:{self.version}\n"
        if self.independent_segments:
            ret += "#EXT-X-INDEPENDENT-SEGMENTS\n"
        if self.allow_cache is not None:
            ret += "#EXT-X-ALLOW-CACHE:" + ("YES" if self.allow_cache else "NO") + "\n"
        ret += f"#EXT-X-TARGETDURATION:{self.target_duration}\n"
        if self.server_control is not None:
            ret += self.server_control.marshal()
        if self.part_inf is not None:
            ret += self.part_inf.marshal()
        ret += f"#EXT-X-MEDIA-SEQUENCE:{self.media_sequence}\n"
        if self.discontinuity_sequence is not None:
            ret += f"#EXT-X-DISCONTINUITY-SEQUENCE:{self.media_sequence}\n"
        if self.playlist_type is not None:
            ret += f"#EXT-X-PLAYLIST-TYPE:{self.playlist_type.value}\n"
        if self.map is not None:
            ret += self.map.marshal()
        if self.skip is not None:
            ret += self.skip.marshal()
        ret += "".join(seg.marshal() for seg in self.segments)
        ret += "".join(part.marshal() for part in self.parts)
        if self.preload_hint is not None:
            ret += self.preload_hint.marshal()
        if self.endlist:
            ret += "#EXT-X-ENDLIST\n"
        return ret.encode("utf-8")