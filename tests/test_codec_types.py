from dataclasses import FrozenInstanceError

import pytest

from hlstools.codec_types import (
    AV1,
    H264,
    H265,
    VP9,
    MPEG4Audio,
    MPEG4AudioConfig,
    Opus,
    Track,
)


def test_value_equality():
    assert AV1(b"\x01\x02") == AV1(b"\x01\x02")
    assert (AV1(b"\x01") == AV1(b"\x02")) is False


def test_different_codec_classes_are_not_equal():
    assert (H264(sps=b"\x67", pps=b"\x68") == H265(sps=b"\x67", pps=b"\x68")) is False


def test_codecs_are_immutable():
    codec = H264(sps=b"\x67", pps=b"\x68")
    with pytest.raises(FrozenInstanceError):
        codec.sps = b""
    assert codec.sps == b"\x67"
    assert codec == H264(sps=b"\x67", pps=b"\x68")


def test_mpeg4_audio_exposes_config_values():
    codec = MPEG4Audio(MPEG4AudioConfig(type=2, sample_rate=44100, channel_count=2))
    assert codec.sample_rate == 44100
    assert codec.channel_count == 2
    assert codec.config.type == 2


def test_vp9_fields_are_kept():
    codec = VP9(width=1920, height=1080, profile=1, bit_depth=8, chroma_subsampling=1)
    assert (codec.width, codec.height, codec.profile, codec.bit_depth) == (1920, 1080, 1, 8)
    assert codec.color_range is False


def test_track_holds_codec_and_is_hashable():
    codec = Opus(channel_count=2)
    first = Track(codec)
    second = Track(Opus(channel_count=2))
    assert first.codec is codec
    assert first == second
    assert len({first, second}) == 1