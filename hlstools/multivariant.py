"""Multivariant (master) M3U8 playlists."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

from hlstools.primitives import (
    PlaylistError,
    parse_float,
    parse_uint,
    read_line,
    unmarshal_attributes,
    unmarshal_duration,
    unmarshal_header,
)

MAX_SUPPORTED_VERSION = 9


def _seconds(value: timedelta) -> str:
    return f"{value.total_seconds():.5f}"


def _to_text(buf: bytes | str) -> str:
    if isinstance(buf, str):
        return buf
    return buf.decode("utf-8", errors="replace")


class RenditionType(str, Enum):
    """Type of an EXT-X-MEDIA rendition."""

    AUDIO = "AUDIO"
    VIDEO = "VIDEO"
    SUBTITLES = "SUBTITLES"
    CLOSED_CAPTIONS = "CLOSED-CAPTIONS"


@dataclass
class MultivariantStart:
    """An EXT-X-START tag."""

    time_offset: timedelta = timedelta(0)

    @classmethod
    def unmarshal(cls, value: str) -> MultivariantStart:
        """Decode the attributes of the tag."""
        start = cls()
        for key, val in unmarshal_attributes(value).items():
            if key == "TIME-OFFSET":
                start.time_offset = unmarshal_duration(val)

        if not start.time_offset:
            raise PlaylistError("TIME-OFFSET missing")
        return start

    def marshal(self) -> str:
        """Encode the tag as a line."""
        return f"#EXT-X-START:TIME-OFFSET={_seconds(self.time_offset)}\n"


@dataclass
class MultivariantVariant:
    """An EXT-X-STREAM-INF tag and the URI that follows it."""

    bandwidth: int = 0
    codecs: list[str] = field(default_factory=list)
    uri: str = ""
    average_bandwidth: int | None = None
    resolution: str = ""
    frame_rate: float | None = None
    video: str = ""
    audio: str = ""
    subtitles: str = ""
    closed_captions: str = ""

    @classmethod
    def unmarshal(cls, value: str) -> MultivariantVariant:
        """Decode the tag attributes, followed by a newline and the URI."""
        attr_line, _, rest = value.partition("\n")
        uri = rest.split("\n", 1)[0]

        variant = cls()
        for key, val in unmarshal_attributes(attr_line).items():
            if key == "BANDWIDTH":
                variant.bandwidth = parse_uint(val, 31)
            elif key == "AVERAGE-BANDWIDTH":
                variant.average_bandwidth = parse_uint(val, 31)
            elif key == "CODECS":
                variant.codecs = val.split(",")
            elif key == "RESOLUTION":
                variant.resolution = val
            elif key == "FRAME-RATE":
                variant.frame_rate = parse_float(val)
            elif key == "VIDEO":
                variant.video = val
            elif key == "AUDIO":
                variant.audio = val
            elif key == "SUBTITLES":
                variant.subtitles = val
            elif key == "CLOSED-CAPTIONS":
                variant.closed_captions = val

        if not uri or uri.startswith("#"):
            raise PlaylistError(f"invalid URI: {uri}")
        variant.uri = uri
        return variant

    def marshal(self) -> str:
        """Encode the tag and its URI."""
        ret = f"#EXT-X-STREAM-INF:BANDWIDTH={self.bandwidth}"
        if self.average_bandwidth is not None:
            ret += f",AVERAGE-BANDWIDTH={self.average_bandwidth}"
        ret += ',CODECS="' + ",".join(self.codecs) + '"'
        if self.resolution:
            ret += f",RESOLUTION={self.resolution}"
        if self.frame_rate is not None:
            ret += f",FRAME-RATE={self.frame_rate:.3f}"
        if self.video:
            ret += f',VIDEO="{self.video}"'
        if self.audio:
            ret += f',AUDIO="{self.audio}"'
        if self.subtitles:
            ret += f',SUBTITLES="{self.subtitles}"'
        if self.closed_captions:
            ret += f',CLOSED-CAPTIONS="{self.closed_captions}"'
        return ret + "\n" + self.uri + "\n"


@dataclass
class MultivariantRendition:
    """An EXT-X-MEDIA tag."""

    type: RenditionType
    group_id: str
    uri: str = ""
    instream_id: str = ""
    name: str = ""
    language: str = ""
    default: bool = False
    autoselect: bool = False
    forced: bool | None = None
    channels: str = ""

    @classmethod
    def unmarshal(cls, value: str) -> MultivariantRendition:
        """Decode the attributes of the tag."""
        attrs = unmarshal_attributes(value)

        rendition_type: RenditionType | None = None
        fields: dict[str, object] = {}
        for key, val in attrs.items():
            if key == "TYPE":
                try:
                    rendition_type = RenditionType(val)
                except ValueError as exc:
                    raise PlaylistError(f"invalid type: {val}") from exc
            elif key == "GROUP-ID":
                fields["group_id"] = val
            elif key == "LANGUAGE":
                fields["language"] = val
            elif key == "NAME":
                fields["name"] = val
            elif key == "DEFAULT":
                fields["default"] = val == "YES"
            elif key == "AUTOSELECT":
                fields["autoselect"] = val == "YES"
            elif key == "FORCED":
                fields["forced"] = val == "YES"
            elif key == "CHANNELS":
                fields["channels"] = val
            elif key == "URI":
                fields["uri"] = val
            elif key == "INSTREAM-ID":
                fields["instream_id"] = val

        if rendition_type is None:
            raise PlaylistError("missing type")
        if not fields.get("group_id"):
            raise PlaylistError("GROUP-ID missing")

        uri = fields.get("uri", "")
        if rendition_type is RenditionType.CLOSED_CAPTIONS and uri:
            raise PlaylistError("URI is forbidden for type CLOSED-CAPTIONS")
        if rendition_type is RenditionType.SUBTITLES and not uri:
            raise PlaylistError("URI is required for type SUBTITLES")

        instream_id = fields.get("instream_id", "")
        if rendition_type is RenditionType.CLOSED_CAPTIONS:
            if not instream_id:
                raise PlaylistError("missing INSTREAM-ID")
        elif instream_id:
            raise PlaylistError(
                f"INSTREAM-ID is forbidden with type {rendition_type.value}"
            )

        return cls(type=rendition_type, **fields)  # type: ignore[arg-type]

    def marshal(self) -> str:
        """Encode the tag as a line."""
        ret = f'#EXT-X-MEDIA:TYPE="{self.type.value}",GROUP-ID="{self.group_id}"'
        if self.language:
            ret += f',LANGUAGE="{self.language}"'
        if self.name:
            ret += f',NAME="{self.name}"'
        if self.default:
            ret += ",DEFAULT=YES"
        if self.autoselect:
            ret += ",AUTOSELECT=YES"
        if self.forced is not None:
            ret += ",FORCED=" + ("YES" if self.forced else "NO")
        if self.channels:
            ret += f',CHANNELS="{self.channels}"'
        if self.uri:
            ret += f',URI="{self.uri}"'
        return ret + "\n"


@dataclass
class Multivariant:
    """A multivariant playlist."""

    version: int = 0
    independent_segments: bool = False
    start: MultivariantStart | None = None
    variants: list[MultivariantVariant] = field(default_factory=list)
    renditions: list[MultivariantRendition] = field(default_factory=list)

    @classmethod
    def unmarshal(cls, buf: bytes | str) -> Multivariant:
        """Decode a playlist."""
        s = unmarshal_header(_to_text(buf))
        playlist = cls()

        while True:
            line, s = read_line(s)
            if not line and not s:
                break

            if line.startswith("#EXT-X-VERSION:"):
                playlist.version = parse_uint(line[len("#EXT-X-VERSION:"):], 31)
                if playlist.version > MAX_SUPPORTED_VERSION:
                    raise PlaylistError(
                        f"unsupported HLS version ({playlist.version})"
                    )

            elif line.startswith("#EXT-X-INDEPENDENT-SEGMENTS"):
                playlist.independent_segments = True

            elif line.startswith("#EXT-X-START:"):
                playlist.start = MultivariantStart.unmarshal(
                    line[len("#EXT-X-START:"):]
                )

            elif line.startswith("#EXT-X-STREAM-INF:"):
                uri_line, s = read_line(s)
                text = line[len("#EXT-X-STREAM-INF:"):] + "\n" + uri_line
                try:
                    variant = MultivariantVariant.unmarshal(text)
                except PlaylistError as exc:
                    raise PlaylistError(f"invalid variant: {exc}") from exc
                playlist.variants.append(variant)

            elif line.startswith("#EXT-X-MEDIA:"):
                try:
                    rendition = MultivariantRendition.unmarshal(
                        line[len("#EXT-X-MEDIA:"):]
                    )
                except PlaylistError as exc:
                    raise PlaylistError(f"invalid rendition: {exc}") from exc
                playlist.renditions.append(rendition)

        if not playlist.variants:
            raise PlaylistError("no variants found")
        return playlist

    def marshal(self) -> bytes:
        """Encode the playlist."""
        ret = f"#EXTM3U\n#EXT-X-VERSION:{self.version}\n"
        if self.independent_segments:
            ret += "#EXT-X-INDEPENDENT-SEGMENTS\n"
        if self.start is not None:
            ret += self.start.marshal()
        ret += "\n"
        ret += "".join(v.marshal() for v in self.variants)
        if self.renditions:
            ret += "\n" + "".join(r.marshal() for r in self.renditions)
        return ret.encode("utf-8")