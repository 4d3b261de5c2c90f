"""Part duration selection for low-latency fMP4 segmenting."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from hlstools.codec_types import Codec, MPEG4Audio, Opus

_OPUS_TIME_SCALE = 48000
_MAX_PART_DURATION = timedelta(seconds=5)
_PART_DURATION_STEP = timedelta(milliseconds=5)


def fmp4_time_scale(codec: Codec) -> int:
    """Return the fMP4 time scale of an audio codec, or 0 for other codecs."""
    if isinstance(codec, MPEG4Audio):
        return codec.config.sample_rate
    if isinstance(codec, Opus):
        return _OPUS_TIME_SCALE
    return 0


def part_duration_is_compatible(part_duration: timedelta, sample_duration: timedelta) -> bool:
    """Tell whether parts of ``part_duration`` stay above 85% of their maximum length.

    A part holds whole samples, so its real length is the part duration
    rounded up to a multiple of the sample duration.
    """
    if sample_duration > part_duration:
        return False

    count, remainder = divmod(part_duration, sample_duration)
    if remainder:
        count += 1
    covered = sample_duration * count

    return part_duration > (covered * 85) // 100


def part_duration_is_compatible_with_all(
    part_duration: timedelta, sample_durations: Iterable[timedelta]
) -> bool:
    """Tell whether ``part_duration`` is compatible with every sample duration."""
    return all(part_duration_is_compatible(part_duration, sd) for sd in sample_durations)


def find_compatible_part_duration(
    min_part_duration: timedelta, sample_durations: Iterable[timedelta]
) -> timedelta:
    """Find the smallest part duration, in 5 ms steps from the minimum, compatible with all samples.

    The search stops at 5 seconds.
    """
    durations = list(sample_durations)
    candidate = min_part_duration
    while candidate < _MAX_PART_DURATION:
        if part_duration_is_compatible_with_all(candidate, durations):
            break
        candidate += _PART_DURATION_STEP
    return candidate