from datetime import timedelta

import pytest

from hlstools.codec_types import H264, MPEG4Audio, MPEG4AudioConfig, Opus
from hlstools.partduration import (
    find_compatible_part_duration,
    fmp4_time_scale,
    part_duration_is_compatible,
    part_duration_is_compatible_with_all,
)

STEP = timedelta(milliseconds=5)


def test_time_scale_opus():
    assert fmp4_time_scale(Opus(channel_count=2)) == 48000


def test_time_scale_mpeg4_audio_uses_sample_rate():
    codec = MPEG4Audio(MPEG4AudioConfig(type=2, sample_rate=44100, channel_count=2))
    assert fmp4_time_scale(codec) == codec.config.sample_rate


def test_time_scale_video_is_zero():
    assert fmp4_time_scale(H264(sps=b"\x67", pps=b"\x68")) == 0


def test_sample_longer_than_part_is_incompatible():
    assert part_duration_is_compatible(timedelta(milliseconds=100),
                                       timedelta(milliseconds=150)) is False


@pytest.mark.parametrize("multiple", [1, 2, 4, 10])
def test_exact_multiple_is_compatible(multiple):
    sample = timedelta(microseconds=33333)
    assert part_duration_is_compatible(sample * multiple, sample) is True


def test_part_much_shorter_than_rounded_length_is_incompatible():
    assert part_duration_is_compatible(timedelta(milliseconds=100),
                                       timedelta(milliseconds=60)) is False


def test_compatible_with_all_fails_if_one_fails():
    part = timedelta(milliseconds=200)
    good = timedelta(milliseconds=100)
    bad = timedelta(milliseconds=300)
    assert part_duration_is_compatible_with_all(part, {good}) is True
    assert part_duration_is_compatible_with_all(part, {good, bad}) is False


def test_find_with_no_samples_returns_minimum():
    minimum = timedelta(milliseconds=200)
    assert find_compatible_part_duration(minimum, set()) == minimum


def test_find_stops_at_five_seconds():
    result = find_compatible_part_duration(timedelta(milliseconds=200), {timedelta(seconds=6)})
    assert result == timedelta(seconds=5)


@pytest.mark.parametrize(
    "samples",
    [
        {timedelta(microseconds=33333)},
        {timedelta(milliseconds=40), timedelta(microseconds=21333)},
        {timedelta(milliseconds=60), timedelta(milliseconds=70)},
    ],
)
def test_find_returns_smallest_compatible_step(samples):
    minimum = timedelta(milliseconds=200)
    result = find_compatible_part_duration(minimum, samples)

    assert result >= minimum
    assert (result - minimum) % STEP == timedelta(0)
    assert part_duration_is_compatible_with_all(result, samples)

    steps = (result - minimum) // STEP
    assert not any(
        part_duration_is_compatible_with_all(minimum + STEP * k, samples)
        for k in range(steps)
    )