"""Descriptions of the codecs a track can carry."""

from __future__ import annotations

from dataclasses import dataclass


class Codec:
    """Base of every codec description."""


@dataclass(frozen=True)
class AV1(Codec):
    """AV1 video, described by its sequence header OBU."""

    sequence_header: bytes = b""


@dataclass(frozen=True)
class VP9(Codec):
    """VP9 video."""

    width: int = 0
    height: int = 0
    profile: int = 0
    bit_depth: int = 0
    chroma_subsampling: int = 0
    color_range: bool = False


@dataclass(frozen=True)
class H264(Codec):
    """H264 video, described by its parameter sets."""

    sps: bytes = b""
    pps: bytes = b""


@dataclass(frozen=True)
class H265(Codec):
    """H265 video, described by its parameter sets."""

    vps: bytes = b""
    sps: bytes = b""
    pps: bytes = b""


@dataclass(frozen=True)
class Opus(Codec):
    """Opus audio."""

    channel_count: int = 0


@dataclass(frozen=True)
class MPEG4AudioConfig:
    """MPEG-4 Audio configuration."""

    type: int = 0
    sample_rate: int = 0
    channel_count: int = 0


@dataclass(frozen=True)
class MPEG4Audio(Codec):
    """MPEG-4 Audio."""

    config: MPEG4AudioConfig = MPEG4AudioConfig()

    @property
    def sample_rate(self) -> int:
        """Sample rate of the configuration."""
        return self.config.sample_rate

    @property
    def channel_count(self) -> int:
        """Channel count of the configuration."""
        return self.config.channel_count


@dataclass(frozen=True)
class Track:
    """An HLS track."""

    codec: Codec