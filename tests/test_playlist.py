from datetime import timedelta

import pytest

from hlstools.media import Media, MediaMap, MediaPlaylistType, MediaSegment
from hlstools.multivariant import (
    Multivariant,
    MultivariantRendition,
    MultivariantStart,
    MultivariantVariant,
    RenditionType,
)
from hlstools.playlist import unmarshal
from hlstools.primitives import PlaylistError


def _text(*lines):
    return "".join(f"{line}\n" for line in lines)


# --- multivariant playlist with start tag, two variants, two renditions ---

_MV_CODECS = ["avc1.42c028", "mp4a.40.2"]


def _mv_stream(bandwidth, average, extra=""):
    return (
        f"#EXT-X-STREAM-INF:BANDWIDTH={bandwidth},AVERAGE-BANDWIDTH={average},"
        f'CODECS="{",".join(_MV_CODECS)}",RESOLUTION=1280x720,FRAME-RATE=24.000{extra}'
    )


def _mv_media(kind, group, tail):
    return (
        f'#EXT-X-MEDIA:TYPE="{kind}",GROUP-ID="{group}",LANGUAGE="en",NAME="english"'
        f",DEFAULT=YES,AUTOSELECT=YES,{tail}"
    )


MV_LIBRARY_TEXT = _text(
    "#EXTM3U",
    "#EXT-X-VERSION:9",
    "#EXT-X-INDEPENDENT-SEGMENTS",
    "#EXT-X-START:TIME-OFFSET=15.00000",
    "",
    _mv_stream(155000, 120000, ',AUDIO="aud1",SUBTITLES="sub1"'),
    "stream1.m3u8",
    _mv_stream(55000, 20000),
    "stream2.m3u8",
    "",
    _mv_media("AUDIO", "aud1", 'CHANNELS="2",URI="audio.m3u8"'),
    _mv_media("SUBTITLES", "sub1", 'FORCED=NO,URI="sub.m3u8"'),
)

MV_LIBRARY_DEC = Multivariant(
    version=9,
    independent_segments=True,
    start=MultivariantStart(time_offset=timedelta(seconds=15)),
    variants=[
        MultivariantVariant(
            bandwidth=155000,
            average_bandwidth=120000,
            codecs=list(_MV_CODECS),
            resolution="1280x720",
            frame_rate=24.0,
            audio="aud1",
            subtitles="sub1",
            uri="stream1.m3u8",
        ),
        MultivariantVariant(
            bandwidth=55000,
            average_bandwidth=20000,
            codecs=list(_MV_CODECS),
            resolution="1280x720",
            frame_rate=24.0,
            uri="stream2.m3u8",
        ),
    ],
    renditions=[
        MultivariantRendition(
            type=RenditionType.AUDIO,
            uri="audio.m3u8",
            group_id="aud1",
            language="en",
            name="english",
            autoselect=True,
            default=True,
            channels="2",
        ),
        MultivariantRendition(
            type=RenditionType.SUBTITLES,
            uri="sub.m3u8",
            group_id="sub1",
            language="en",
            name="english",
            autoselect=True,
            default=True,
            forced=False,
        ),
    ],
)

# --- multivariant playlist with I-frame streams, which are ignored ---

_AZURE_ROWS = [
    (546902, "avc1.64000d", 393546, "320x180"),
    (801672, "avc1.64001e", 642832, "640x360"),
    (1158387, "avc1.64001e", 991868, "640x360"),
    (1667928, "avc1.64001f", 1490441, "960x540"),
    (2432306, "avc1.64001f", 2238364, "960x540"),
    (3604342, "avc1.64001f", 3385171, "1280x720"),
    (4929129, "avc1.640028", 4681440, "1920x1080"),
    (6254125, "avc1.640028", 5977913, "1920x1080"),
]

_AZURE_AUDIO = [
    ("AAC_und_ch2_128kbps", 125615, False),
    ("AAC_und_ch2_56kbps", 53620, True),
]


def _quality_uri(level, what, suffix=""):
    return f"QualityLevels({level})/Manifest({what},format=m3u8-aapl{suffix})"


def _azure_lines():
    for name, level, default in _AZURE_AUDIO:
        flag = ",DEFAULT=YES" if default else ""
        yield (
            f'#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="audio",NAME="{name}"{flag},'
            f'URI="{_quality_uri(level, name)}"'
        )
    for bandwidth, video_codec, level, resolution in _AZURE_ROWS:
        yield (
            f"#EXT-X-STREAM-INF:BANDWIDTH={bandwidth},RESOLUTION={resolution},"
            f'CODECS="{video_codec},mp4a.40.2",AUDIO="audio"'
        )
        yield _quality_uri(level, "video")
        yield (
            f"#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH={bandwidth},RESOLUTION={resolution},"
            f'CODECS="{video_codec}",URI="{_quality_uri(level, "video", ",type=keyframes")}"'
        )


MV_AZURE_TEXT = _text("#EXTM3U", "#EXT-X-VERSION:4", *_azure_lines())

MV_AZURE_DEC = Multivariant(
    version=4,
    variants=[
        MultivariantVariant(
            bandwidth=bandwidth,
            codecs=[video_codec, "mp4a.40.2"],
            uri=_quality_uri(level, "video"),
            resolution=resolution,
            audio="audio",
        )
        for bandwidth, video_codec, level, resolution in _AZURE_ROWS
    ],
    renditions=[
        MultivariantRendition(
            type=RenditionType.AUDIO,
            group_id="audio",
            uri=_quality_uri(level, name),
            name=name,
            default=default,
        )
        for name, level, default in _AZURE_AUDIO
    ],
)

# --- VOD media playlist with byte ranges ---

_VOD_RANGES = [
    (5874288, 721),
    (5863101, 5875009),
    (5856476, 11738110),
    (5859643, 17594586),
]


def _vod_segment_lines():
    for length, start in _VOD_RANGES:
        yield "#EXTINF:6.00000,"
        yield f"#EXT-X-BYTERANGE:{length}@{start}"
        yield "main.mp4"


MEDIA_VOD_TEXT = _text(
    "#EXTM3U",
    "#EXT-X-TARGETDURATION:6",
    "#EXT-X-VERSION:7",
    "#EXT-X-MEDIA-SEQUENCE:1",
    "#EXT-X-PLAYLIST-TYPE:VOD",
    "#EXT-X-INDEPENDENT-SEGMENTS",
    '#EXT-X-MAP:URI="main.mp4",BYTERANGE="721@0"',
    *_vod_segment_lines(),
    "#EXT-X-ENDLIST",
)

MEDIA_VOD_DEC = Media(
    version=7,
    independent_segments=True,
    target_duration=6,
    media_sequence=1,
    playlist_type=MediaPlaylistType.VOD,
    map=MediaMap(uri="main.mp4", byte_range_length=721, byte_range_start=0),
    segments=[
        MediaSegment(
            duration=timedelta(seconds=6),
            byte_range_length=length,
            byte_range_start=start,
            uri="main.mp4",
        )
        for length, start in _VOD_RANGES
    ],
    endlist=True,
)


@pytest.mark.parametrize(
    "text,expected",
    [
        pytest.param(MV_LIBRARY_TEXT, MV_LIBRARY_DEC, id="multivariant_library"),
        pytest.param(MV_AZURE_TEXT, MV_AZURE_DEC, id="multivariant_azure"),
        pytest.param(MEDIA_VOD_TEXT, MEDIA_VOD_DEC, id="media_vod"),
    ],
)
def test_unmarshal(text, expected):
    decoded = unmarshal(text.encode())
    assert type(decoded) is type(expected)
    assert decoded == expected


def test_unmarshal_without_terminated_tag_line():
    with pytest.raises(PlaylistError, match="unable to detect"):
        unmarshal(b"#EXTINF:")


def test_unmarshal_unknown_content():
    with pytest.raises(PlaylistError, match="unable to detect"):
        unmarshal("#EXTM3U\n#EXT-X-VERSION:3\n")


def test_unmarshal_detected_media_with_bad_extinf():
    with pytest.raises(PlaylistError, match="invalid EXTINF"):
        unmarshal("#EXTM3U\n#EXTINF:\n")